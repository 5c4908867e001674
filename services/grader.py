"""
Quiz auto-grading.

Answers are compared as trimmed, case-folded strings: "Paris" matches " paris ",
but "5" and "5.0" are different answers. There is no partial credit.
"""
import math
from collections import namedtuple

from errors import EmptyQuizError, ValidationError

QuestionKey = namedtuple("QuestionKey", "id correct_answer points")
QuestionResult = namedtuple("QuestionResult", "question_id correct correct_answer user_answer")


class GradeReport(namedtuple("GradeReport", "results correct_count total_points earned_points score")):
    __slots__ = ()

    @property
    def score_display(self) -> str:
        return f"{self.score:.2f}"

    @property
    def rounded_score(self) -> float:
        return round(self.score, 2)

    @property
    def reward_points(self) -> int:
        # 10 points per 10 percentage points, truncated
        return int(math.floor(self.score / 10))

    @property
    def total_questions(self) -> int:
        return len(self.results)

    def results_payload(self):
        return [
            {
                "questionId": r.question_id,
                "correct": r.correct,
                "correctAnswer": r.correct_answer,
                "userAnswer": r.user_answer,
            }
            for r in self.results
        ]


def normalize_answer(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        value = "true" if value else "false"
    return str(value).strip().lower()


def answers_match(submitted, correct) -> bool:
    given = normalize_answer(submitted)
    return bool(given) and given == normalize_answer(correct)


def align_answers(questions, answers):
    """Return one submitted answer per question, in question order.

    ``answers`` is either a mapping of question id to answer (preferred) or a
    list aligned by position with the questions. Questions missing from a
    mapping count as unanswered.
    """
    if answers is None:
        raise ValidationError("Answers are required")

    if isinstance(answers, dict):
        by_id = {str(k).strip(): v for k, v in answers.items()}
        known = {str(q.id) for q in questions}
        unknown = sorted(set(by_id) - known)
        if unknown:
            raise ValidationError(f"Answers reference unknown questions: {', '.join(unknown)}")
        return [by_id.get(str(q.id)) for q in questions]

    if isinstance(answers, (list, tuple)):
        if len(answers) != len(questions):
            raise ValidationError(f"Expected {len(questions)} answers, got {len(answers)}")
        return list(answers)

    raise ValidationError("Answers must be a list or an object keyed by question id")


def _ordered(questions):
    indexed = list(enumerate(questions))
    indexed.sort(key=lambda pair: (getattr(pair[1], "order_index", None) or 0, pair[0]))
    return [q for _, q in indexed]


def grade_quiz(questions, answers) -> GradeReport:
    questions = _ordered(questions)
    if not questions:
        raise EmptyQuizError()

    submitted = align_answers(questions, answers)

    results = []
    correct_count = 0
    total_points = 0
    earned_points = 0
    for question, user_answer in zip(questions, submitted):
        points = int(question.points or 0)
        total_points += points
        correct = answers_match(user_answer, question.correct_answer)
        if correct:
            correct_count += 1
            earned_points += points
        results.append(QuestionResult(question.id, correct, question.correct_answer, user_answer))

    score = (earned_points * 100 / total_points) if total_points > 0 else 0.0
    return GradeReport(results, correct_count, total_points, earned_points, float(score))


def parse_time_taken(value) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError("timeTakenSeconds must be a non-negative number")
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValidationError("timeTakenSeconds must be a non-negative number")
    if seconds < 0 or math.isnan(seconds) or math.isinf(seconds):
        raise ValidationError("timeTakenSeconds must be a non-negative number")
    return int(math.ceil(seconds))


def study_minutes(time_taken_seconds: int) -> int:
    return int(math.ceil((time_taken_seconds or 0) / 60))
