import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from errors import ForbiddenError, NotFoundError, ValidationError
from extensions import db
from models import Course, Quiz, QuizAttempt, QuizQuestion
from models.course import DIFFICULTIES
from models.quiz import QUESTION_TYPES
from routes.common import get_json, text_field, optional_int
from services import ai
from services.grader import parse_time_taken
from services.progress import record_quiz_attempt

quizzes_bp = Blueprint("quizzes", __name__, url_prefix="/api/quizzes")
logger = logging.getLogger(__name__)

MAX_GENERATED_QUESTIONS = 20


def _quiz_or_404(quiz_id: int) -> Quiz:
    quiz = db.session.get(Quiz, quiz_id)
    if not quiz:
        raise NotFoundError("Quiz not found")
    return quiz


def _require_course_instructor(course_id):
    if course_id is None:
        return
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if course.instructor_id != current_user.id:
        raise ForbiddenError("Not authorized to manage quizzes for this course")


@quizzes_bp.get("")
def list_quizzes():
    q = Quiz.query
    course_id = optional_int(request.args.get("courseId"), "courseId")
    if course_id is not None:
        q = q.filter(Quiz.course_id == course_id)
    quizzes = q.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
    return jsonify({"quizzes": [quiz.to_dict() for quiz in quizzes]})


@quizzes_bp.get("/<int:quiz_id>")
@login_required
def get_quiz(quiz_id: int):
    quiz = _quiz_or_404(quiz_id)
    payload = quiz.to_dict()
    # correct answers stay on the server
    payload["questions"] = [question.to_dict() for question in quiz.questions]
    return jsonify({"quiz": payload})


@quizzes_bp.post("")
@login_required
def create_quiz():
    data = get_json()
    title = text_field(data, "title")
    if not title:
        raise ValidationError("Quiz title is required")
    course_id = optional_int(data.get("course_id"), "course_id")
    _require_course_instructor(course_id)

    quiz = Quiz(
        course_id=course_id,
        title=title[:200],
        description=text_field(data, "description") or None,
        time_limit_minutes=optional_int(data.get("time_limit_minutes"), "time_limit_minutes", 1),
        total_questions=0,
    )
    db.session.add(quiz)
    db.session.commit()
    return jsonify({"quiz": quiz.to_dict()}), 201


@quizzes_bp.post("/<int:quiz_id>/questions")
@login_required
def add_question(quiz_id: int):
    quiz = _quiz_or_404(quiz_id)
    _require_course_instructor(quiz.course_id)

    data = get_json()
    text = text_field(data, "question_text")
    correct = data.get("correct_answer")
    if not text or correct is None or not str(correct).strip():
        raise ValidationError("Question text and correct answer are required")
    qtype = data.get("question_type") or "multiple_choice"
    if qtype not in QUESTION_TYPES:
        raise ValidationError(f"question_type must be one of: {', '.join(QUESTION_TYPES)}")
    options = data.get("options") or []
    if not isinstance(options, list):
        raise ValidationError("options must be a list")
    points = optional_int(data.get("points"), "points", 0)

    question = QuizQuestion(
        quiz_id=quiz.id,
        question_text=text,
        question_type=qtype,
        options=[str(o) for o in options],
        correct_answer=str(correct).strip(),
        points=1 if points is None else points,
        order_index=len(quiz.questions) + 1,
    )
    quiz.questions.append(question)
    quiz.total_questions = len(quiz.questions)
    db.session.commit()
    return jsonify({"question": question.to_dict(include_answer=True)}), 201


@quizzes_bp.post("/generate")
@login_required
def generate_quiz():
    data = get_json()
    topic = text_field(data, "topic")
    if not topic:
        raise ValidationError("Topic is required")
    difficulty = text_field(data, "difficulty") or "beginner"
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"difficulty must be one of: {', '.join(DIFFICULTIES)}")
    num_questions = optional_int(data.get("numQuestions"), "numQuestions", 1, MAX_GENERATED_QUESTIONS) or 5
    course_id = optional_int(data.get("courseId"), "courseId")
    _require_course_instructor(course_id)

    questions = ai.generate_quiz_questions(topic, difficulty, num_questions)

    quiz = Quiz(
        course_id=course_id,
        title=f"Quiz: {topic}"[:200],
        description=f"AI-generated quiz about {topic}",
        time_limit_minutes=optional_int(data.get("timeLimit"), "timeLimit", 1),
        total_questions=len(questions),
    )
    for i, q in enumerate(questions, start=1):
        quiz.questions.append(QuizQuestion(
            question_text=q["question"],
            question_type=q["type"],
            options=q["options"],
            correct_answer=q["correctAnswer"],
            points=q["points"],
            order_index=i,
        ))
    db.session.add(quiz)
    db.session.commit()
    logger.info("Generated quiz %s with %s questions", quiz.id, len(questions))
    return jsonify({"quiz": quiz.to_dict()}), 201


@quizzes_bp.post("/<int:quiz_id>/submit")
@login_required
def submit_quiz(quiz_id: int):
    data = get_json()
    quiz = _quiz_or_404(quiz_id)
    time_taken = parse_time_taken(data.get("timeTakenSeconds"))

    attempt, report = record_quiz_attempt(db.session, current_user, quiz, data.get("answers"), time_taken)
    return jsonify({
        "attemptId": attempt.id,
        "score": report.score_display,
        "correctAnswers": report.correct_count,
        "totalQuestions": report.total_questions,
        "earnedPoints": report.earned_points,
        "totalPoints": report.total_points,
        "pointsEarned": report.reward_points,
        "results": report.results_payload(),
    })


@quizzes_bp.get("/user/attempts")
@login_required
def list_attempts():
    attempts = QuizAttempt.query.filter_by(user_id=current_user.id) \
        .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc()).all()
    return jsonify({"attempts": [a.to_dict() for a in attempts]})


@quizzes_bp.delete("/<int:quiz_id>")
@login_required
def delete_quiz(quiz_id: int):
    quiz = _quiz_or_404(quiz_id)
    if quiz.course_id and quiz.course.instructor_id != current_user.id:
        raise ForbiddenError("Not authorized to delete this quiz")
    db.session.delete(quiz)
    db.session.commit()
    return jsonify({"message": "Quiz deleted successfully"})
