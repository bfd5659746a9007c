import pytest

from ranking import ScoreRecord, RankedRecord, rank, summarize, ordinal, round_percentage


def _records(*pairs):
    return [ScoreRecord(sid, f"Student {sid}", score) for sid, score in pairs]


def test_rank_skips_positions_after_tie():
    ranked = rank(_records(('A', 90), ('B', 80), ('C', 80), ('D', 70)))
    assert [r.position for r in ranked] == [1, 2, 2, 4]
    assert [r.student_id for r in ranked] == ['A', 'B', 'C', 'D']


def test_rank_sorts_descending_and_keeps_input_order_for_ties():
    ranked = rank(_records(('A', 55), ('B', 72.5), ('C', 90), ('D', 72.5), ('E', 90)))
    assert [r.student_id for r in ranked] == ['C', 'E', 'B', 'D', 'A']
    assert [r.position for r in ranked] == [1, 1, 3, 3, 5]


def test_rank_all_tied():
    ranked = rank(_records(('A', 60), ('B', 60), ('C', 60)))
    assert [r.position for r in ranked] == [1, 1, 1]


def test_rank_empty():
    assert rank([]) == []


def test_rank_is_permutation_with_competition_positions():
    scores = _records(('A', 40), ('B', 100), ('C', 40), ('D', 0), ('E', 75), ('F', 100), ('G', 40))
    ranked = rank(scores)

    assert len(ranked) == len(scores)
    assert sorted(r.student_id for r in ranked) == sorted(s.student_id for s in scores)
    for i in range(len(ranked) - 1):
        assert ranked[i].score >= ranked[i + 1].score
    for record in ranked:
        higher = sum(1 for s in scores if s.score > record.score)
        assert record.position == higher + 1


def test_rank_duplicate_student_ids_are_kept():
    ranked = rank(_records(('A', 50), ('A', 70)))
    assert [(r.student_id, r.score, r.position) for r in ranked] == [('A', 70, 1), ('A', 50, 2)]


def test_rank_is_idempotent_on_its_own_output():
    scores = _records(('A', 88), ('B', 91), ('C', 88), ('D', 42))
    first = rank(scores)
    again = rank(scores)
    rerun = rank(first)
    assert [r.position for r in again] == [r.position for r in first]
    assert rerun == first
    assert all(isinstance(r, RankedRecord) for r in rerun)


def test_summarize_worked_example():
    summary = summarize(_records(('A', 90), ('B', 80), ('C', 80), ('D', 70)), 5)
    assert summary.participant_count == 4
    assert summary.roster_size == 5
    assert summary.average_score == 80.0
    assert summary.min_score == 70
    assert summary.max_score == 90
    assert summary.median_score == 80.0
    assert summary.participation_rate == 80.0


def test_summarize_single_participant():
    summary = summarize(_records(('A', 75)), 1)
    assert summary.participant_count == 1
    assert summary.average_score == 75.0
    assert summary.min_score == 75
    assert summary.max_score == 75
    assert summary.participation_rate == 100.0


def test_summarize_all_tied_average():
    summary = summarize(_records(('A', 60), ('B', 60), ('C', 60)), 3)
    assert summary.average_score == 60.0


def test_summarize_empty_scores():
    summary = summarize([], 30)
    assert summary.participant_count == 0
    assert summary.average_score is None
    assert summary.min_score is None
    assert summary.max_score is None
    assert summary.median_score is None
    assert summary.participation_rate == 0


def test_summarize_zero_roster_does_not_divide_by_zero():
    assert summarize(_records(('A', 50)), 0).participation_rate == 0
    assert summarize([], 0).participation_rate == 0


def test_summarize_rounds_to_one_decimal():
    summary = summarize(_records(('A', 70), ('B', 70), ('C', 71)), 3)
    assert summary.average_score == 70.3
    assert summarize(_records(('A', 70), ('B', 70)), 3).participation_rate == 66.7


def test_summarize_median_even_count():
    summary = summarize(_records(('A', 40), ('B', 90), ('C', 60), ('D', 55)), 4)
    assert summary.median_score == 57.5


def test_summarize_does_not_validate_roster_smaller_than_participants():
    summary = summarize(_records(('A', 40), ('B', 90)), 1)
    assert summary.participation_rate == 200.0


@pytest.mark.parametrize('value, expected', [
    (80.05, 80.1),
    (0.25, 0.3),
    (72.449, 72.4),
    (-0.05, -0.1),
    (100, 100.0),
])
def test_round_percentage_half_away_from_zero(value, expected):
    assert round_percentage(value) == expected


@pytest.mark.parametrize('value, expected', [
    (1, '1st'),
    (2, '2nd'),
    (3, '3rd'),
    (4, '4th'),
    (11, '11th'),
    (12, '12th'),
    (13, '13th'),
    (21, '21st'),
    (22, '22nd'),
    (23, '23rd'),
    (101, '101st'),
    (111, '111th'),
    (112, '112th'),
    ('x', 'x'),
])
def test_ordinal(value, expected):
    assert ordinal(value) == expected
