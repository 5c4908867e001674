"""Persist review and quiz outcomes, crediting the user's points."""
import logging

from models import QuizAttempt, StudySession
from models.common import utcnow
from services.grader import grade_quiz, study_minutes
from services.scheduler import review_flashcard

logger = logging.getLogger(__name__)

ENROLL_POINTS = 10
COMPLETION_POINTS = 50
ASSISTANT_MESSAGE_POINTS = 1


def apply_review(session, user, card, grade: int, now=None):
    now = now or utcnow()
    outcome = review_flashcard(card.difficulty_level, card.review_count, grade, now)

    card.difficulty_level = outcome.difficulty
    card.review_count = outcome.review_count
    card.last_reviewed = now
    card.next_review = outcome.next_review
    user.award_points(outcome.points)
    session.commit()

    logger.info("User %s reviewed card %s (grade %s): next review in %s day(s)",
                user.id, card.id, grade, outcome.interval_days)
    return outcome


def record_quiz_attempt(session, user, quiz, answers, time_taken_seconds: int, now=None):
    report = grade_quiz(quiz.questions, answers)
    reward = report.reward_points

    attempt = QuizAttempt(
        user_id=user.id,
        quiz_id=quiz.id,
        score=report.rounded_score,
        total_questions=report.total_questions,
        correct_answers=report.correct_count,
        time_taken_seconds=time_taken_seconds,
        completed_at=now or utcnow(),
    )
    session.add(attempt)
    session.add(StudySession(
        user_id=user.id,
        course_id=quiz.course_id,
        session_type="quiz",
        duration_minutes=study_minutes(time_taken_seconds),
        points_earned=reward,
    ))
    user.award_points(reward)
    session.commit()

    logger.info("User %s scored %s on quiz %s", user.id, report.score_display, quiz.id)
    return attempt, report
