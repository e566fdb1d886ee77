"""Aggregate statistics over every stored question."""
from tenq.models.question import QuestionRecord, QuestionStats

# difficulty_rank → band
_BANDS = (("easy", 1, 3), ("medium", 4, 6), ("hard", 7, 8), ("expert", 9, 10))


def difficulty_band(rank: int) -> str:
    for name, low, high in _BANDS:
        if low <= rank <= high:
            return name
    return "expert"


def compute_question_stats(records: list[QuestionRecord]) -> QuestionStats:
    distribution = {name: 0 for name, _, _ in _BANDS}
    for r in records:
        distribution[difficulty_band(r.difficulty_rank)] += 1

    total = len(records)
    average = sum(r.difficulty_rank for r in records) / total if total else 0.0
    return QuestionStats(
        total_questions=total,
        average_difficulty=round(average, 1),
        difficulty_distribution=distribution,
        dates_covered=len({r.date for r in records}),
    )
