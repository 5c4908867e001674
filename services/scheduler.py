"""
Spaced-repetition scheduling for flashcard reviews.

A card carries a continuous difficulty in [1, 5]. Each review moves the
difficulty according to the self-reported grade and schedules the next review
a whole number of days ahead. The interval is derived from the difficulty the
card had *before* the review, so a card graded easy is pushed out according to
how hard it used to be.
"""
import math
from collections import namedtuple
from datetime import datetime, timedelta

from errors import ValidationError
from services.updates import whole_number

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 5.0

EASY, MEDIUM, HARD, AGAIN = 1, 2, 3, 4
GRADE_NAMES = {EASY: "easy", MEDIUM: "medium", HARD: "hard", AGAIN: "again"}

# grade -> (difficulty change, interval multiplier, reward points)
_RULES = {
    EASY: (-0.2, 2.5, 3),
    MEDIUM: (0.0, 1.5, 2),
    HARD: (0.3, 0.8, 1),
}
_AGAIN_RULE = (0.5, None, 1)

ReviewOutcome = namedtuple("ReviewOutcome", "difficulty review_count next_review interval_days points")


def clamp_difficulty(value: float) -> float:
    return min(MAX_DIFFICULTY, max(MIN_DIFFICULTY, value))


def parse_grade(value) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Review grade is required")
    grade = whole_number(value)
    if grade is None:
        raise ValidationError("Review grade must be an integer between 1 and 4")
    return grade


def reward_points_for_grade(grade: int) -> int:
    return _RULES.get(grade, _AGAIN_RULE)[2]


def review_flashcard(current_difficulty: float, current_review_count: int, grade: int,
                     now: datetime) -> ReviewOutcome:
    """Compute a card's state after one review.

    Grades outside 1-3 are treated as "again": the card comes back tomorrow.
    """
    difficulty = float(MIN_DIFFICULTY if current_difficulty is None else current_difficulty)
    change, multiplier, points = _RULES.get(grade, _AGAIN_RULE)

    if multiplier is None:
        interval_days = 1
    else:
        # rounding strips float noise such as 1.6 * 2.5 == 4.000000000000001
        interval_days = max(1, math.ceil(round(difficulty * multiplier, 9)))

    new_difficulty = round(clamp_difficulty(difficulty + change), 6)
    return ReviewOutcome(
        difficulty=new_difficulty,
        review_count=(current_review_count or 0) + 1,
        next_review=now + timedelta(days=interval_days),
        interval_days=interval_days,
        points=points,
    )
