from pdf_reports import build_results_pdf, format_score
from ranking import ScoreRecord, rank, summarize


def _section(class_name, scores, roster_size):
    records = [ScoreRecord(i, name, score) for i, (name, score) in enumerate(scores, 1)]
    return {
        'class_name': class_name,
        'subject_name': 'Mathematics',
        'assessment_title': 'Mid-Sem Test',
        'assessment_date': '14/03/2026',
        'ranked': rank(records),
        'summary': summarize(records, roster_size),
    }


def test_build_results_pdf_returns_pdf_bytes():
    section = _section('Form 2 Science', [('Ama Mensah', 90), ('Kofi Boateng', 80), ('Esi Owusu', 80)], 4)
    pdf = build_results_pdf([section], 'Test Senior High School')
    assert isinstance(pdf, bytes)
    assert pdf.startswith(b'%PDF')


def test_build_results_pdf_handles_empty_results_and_multiple_sections():
    sections = [
        _section('Form 1 Arts', [('Yaw Darko', 55.5)], 2),
        _section('Form 1 Business', [], 25),
    ]
    pdf = build_results_pdf(sections, 'Test School', report_title='All Classes Assessment Results')
    assert pdf.startswith(b'%PDF')


def test_build_results_pdf_long_class_paginates():
    scores = [(f"Student {i} & Co <b>", 100 - (i % 40)) for i in range(120)]
    pdf = build_results_pdf([_section('Form 3', scores, 130)], 'Test School')
    assert pdf.startswith(b'%PDF')


def test_build_results_pdf_without_sections():
    assert build_results_pdf([], 'Test School').startswith(b'%PDF')


def test_format_score():
    assert format_score(None) == '-'
    assert format_score(80.0) == '80%'
    assert format_score(72.5) == '72.5%'
