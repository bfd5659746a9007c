"""
PDF result sheets.

One section per class: assessment details, a statistics table and the
ranked results table. Later sections start on a new page.
"""

from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak

from ranking import ordinal

HEADER_HEIGHT = 28 * mm


def format_score(value):
    if value is None:
        return '-'
    return f"{float(value):g}%"


def _page_decorations(school_name, report_title):
    def draw(canvas, doc):
        width, height = doc.pagesize
        canvas.saveState()
        canvas.setFont('Helvetica-Bold', 16)
        canvas.drawCentredString(width / 2, height - 15 * mm, school_name.upper())
        canvas.setFont('Helvetica-Bold', 12)
        canvas.drawCentredString(width / 2, height - 22 * mm, report_title)
        canvas.line(doc.leftMargin, height - 25 * mm, width - doc.rightMargin, height - 25 * mm)
        canvas.setFont('Helvetica-Oblique', 8)
        canvas.drawCentredString(width / 2, 10 * mm, f"Page {doc.page}")
        canvas.restoreState()
    return draw


def _stats_table(summary):
    attempted = f"{summary.participant_count}"
    if summary.roster_size:
        attempted += f" ({summary.participation_rate:g}%)"
    rows = [
        ['Total Students', str(summary.roster_size)],
        ['Students Attempted', attempted],
        ['Average Score', format_score(summary.average_score)],
        ['Highest Score', format_score(summary.max_score)],
        ['Lowest Score', format_score(summary.min_score)],
        ['Median Score', format_score(summary.median_score)],
    ]
    table = Table(rows, colWidths=[50 * mm, 40 * mm], hAlign='LEFT')
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('BACKGROUND', (0, 0), (0, -1), colors.whitesmoke),
    ]))
    return table


def _results_table(ranked):
    rows = [['Position', 'Student Name', 'Score']]
    for record in ranked:
        rows.append([ordinal(record.position), record.display_name, format_score(record.score)])
    if not ranked:
        rows.append(['', 'No completed results', ''])
    table = Table(rows, colWidths=[25 * mm, 105 * mm, 30 * mm], repeatRows=1)
    style = [
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1f3b5c')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (0, 0), (0, -1), 'CENTER'),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]
    for row_index in range(2, len(rows), 2):
        style.append(('BACKGROUND', (0, row_index), (-1, row_index), colors.HexColor('#f2f5f9')))
    table.setStyle(TableStyle(style))
    return table


def build_results_pdf(sections, school_name, report_title='Assessment Results'):
    """Render result sections to PDF bytes.

    Each section is a dict with class_name, subject_name, assessment_title,
    assessment_date, ranked (RankedRecords) and summary (ResultSummary).
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=HEADER_HEIGHT + 5 * mm,
        bottomMargin=18 * mm,
        title=report_title,
        author=school_name,
    )
    styles = getSampleStyleSheet()
    heading = ParagraphStyle('SectionHeading', parent=styles['Heading2'], spaceAfter=4)
    small = ParagraphStyle('Small', parent=styles['Normal'], fontSize=8, textColor=colors.grey)

    story = []
    for index, section in enumerate(sections):
        if index:
            story.append(PageBreak())
        story.append(Paragraph(escape(f"{section.get('class_name', '')} - {section.get('subject_name', '')}"), heading))
        story.append(Paragraph(f"<b>Assessment:</b> {escape(str(section.get('assessment_title', '')))}", styles['Normal']))
        if section.get('assessment_date'):
            story.append(Paragraph(f"<b>Date:</b> {escape(str(section['assessment_date']))}", styles['Normal']))
        story.append(Spacer(1, 6 * mm))
        story.append(_stats_table(section['summary']))
        story.append(Spacer(1, 6 * mm))
        story.append(_results_table(section['ranked']))
        story.append(Spacer(1, 4 * mm))
        story.append(Paragraph(f"Generated on {datetime.now().strftime('%d/%m/%Y %H:%M')}", small))

    if not story:
        story.append(Paragraph('No results to display.', styles['Normal']))

    decorate = _page_decorations(school_name, report_title)
    doc.build(story, onFirstPage=decorate, onLaterPages=decorate)
    pdf_data = buffer.getvalue()
    buffer.close()
    return pdf_data
