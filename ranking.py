"""
Ranked results for an assessment.

Turns the completed scores of one assessment into a competition-ranked
result sheet (ties share a position, the next score skips ahead by the size
of the tie) plus the summary numbers shown above every result table.
"""

from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP


ScoreRecord = namedtuple('ScoreRecord', ['student_id', 'display_name', 'score'])

RankedRecord = namedtuple('RankedRecord', ['student_id', 'display_name', 'score', 'position'])

ResultSummary = namedtuple('ResultSummary', [
    'participant_count',
    'roster_size',
    'average_score',
    'min_score',
    'max_score',
    'median_score',
    'participation_rate',
])


def round_percentage(value, places=1):
    """Round half away from zero (75.25 -> 75.3, -0.05 -> -0.1)."""
    if value is None:
        return None
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def rank(scores):
    """Return RankedRecords sorted by score, highest first, with competition positions."""
    # sorted() is stable, so equal scores keep their input order.
    ordered = sorted(scores, key=lambda r: r.score, reverse=True)
    ranked = []
    current_rank = 1
    previous_score = None
    tie_group_size = 0
    for record in ordered:
        if previous_score is not None and record.score != previous_score:
            current_rank += tie_group_size
            tie_group_size = 0
        ranked.append(RankedRecord(record.student_id, record.display_name, record.score, current_rank))
        tie_group_size += 1
        previous_score = record.score
    return ranked


def _median(values):
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def summarize(scores, roster_size):
    """Summary statistics for completed scores against the class roster."""
    values = [r.score for r in scores]
    count = len(values)
    if count:
        average = round_percentage(sum(values) / count)
        low = high = values[0]
        for value in values[1:]:
            if value < low:
                low = value
            if value > high:
                high = value
        median = round_percentage(_median(values))
    else:
        average = low = high = median = None
    rate = round_percentage(count / roster_size * 100) if roster_size else 0.0
    return ResultSummary(
        participant_count=count,
        roster_size=roster_size,
        average_score=average,
        min_score=low,
        max_score=high,
        median_score=median,
        participation_rate=rate,
    )


def ordinal(value):
    """Return ordinal string for an integer (e.g., 1 -> 1st)."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return str(value)
    abs_n = abs(n)
    if 11 <= (abs_n % 100) <= 13:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(abs_n % 10, 'th')
    return f"{n}{suffix}"
