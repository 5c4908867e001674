from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from sqlalchemy import case, func, or_, select

from extensions import db
from models import Course, Enrollment, Flashcard, QuizAttempt, StudySession, User
from models.common import utcnow
from routes.common import optional_int

stats_bp = Blueprint("stats", __name__, url_prefix="/api/stats")

LEADERBOARD_DEFAULT = 50
LEADERBOARD_MAX = 100


@stats_bp.get("/user")
@login_required
def user_stats():
    user_id = current_user.id

    enrolled, completed = db.session.query(
        func.count(Enrollment.id),
        func.sum(case((Enrollment.completed_at.is_not(None), 1), else_=0)),
    ).filter(Enrollment.user_id == user_id).one()

    total_sessions, total_minutes, total_points = db.session.query(
        func.count(StudySession.id),
        func.sum(StudySession.duration_minutes),
        func.sum(StudySession.points_earned),
    ).filter(StudySession.user_id == user_id).one()

    due_filter = or_(Flashcard.next_review.is_(None), Flashcard.next_review <= utcnow())
    cards_total, cards_due = db.session.query(
        func.count(Flashcard.id),
        func.sum(case((due_filter, 1), else_=0)),
    ).filter(Flashcard.user_id == user_id).one()

    attempts, avg_score = db.session.query(
        func.count(QuizAttempt.id),
        func.avg(QuizAttempt.score),
    ).filter(QuizAttempt.user_id == user_id).one()

    recent = StudySession.query.filter_by(user_id=user_id) \
        .order_by(StudySession.created_at.desc(), StudySession.id.desc()).limit(10).all()

    return jsonify({
        "user": {"points": current_user.points, "level": current_user.level},
        "courses": {"enrolled": enrolled or 0, "completed": int(completed or 0)},
        "study": {
            "totalSessions": total_sessions or 0,
            "totalMinutes": int(total_minutes or 0),
            "totalPoints": int(total_points or 0),
        },
        "flashcards": {"total": cards_total or 0, "due": int(cards_due or 0)},
        "quizzes": {
            "totalAttempts": attempts or 0,
            "avgScore": f"{float(avg_score):.2f}" if avg_score is not None else 0,
        },
        "recentActivity": [s.to_dict() for s in recent],
    })


@stats_bp.get("/platform")
def platform_stats():
    total_users = User.query.count()
    total_courses = Course.query.filter(Course.is_published.is_(True)).count()
    questions_answered = db.session.query(func.sum(QuizAttempt.total_questions)).scalar() or 0

    completed_course = select(Enrollment.user_id).where(Enrollment.completed_at.is_not(None))
    took_quiz = select(QuizAttempt.user_id)
    satisfied = db.session.query(func.count(User.id)).filter(
        or_(User.id.in_(completed_course), User.id.in_(took_quiz))
    ).scalar() or 0

    rate = round(satisfied / total_users * 100) if total_users else 0
    return jsonify({
        "activeLearners": total_users,
        "coursesAvailable": total_courses,
        "questionsAnswered": int(questions_answered),
        "satisfactionRate": min(100, max(0, rate)),
    })


@stats_bp.get("/leaderboard")
def leaderboard():
    limit = optional_int(request.args.get("limit"), "limit", 1) or LEADERBOARD_DEFAULT
    limit = min(limit, LEADERBOARD_MAX)

    users = User.query.order_by(User.points.desc(), User.level.desc(), User.id.asc()).limit(limit).all()
    return jsonify({"leaderboard": [
        {
            "rank_position": rank,
            "user_id": u.id,
            "username": u.username,
            "full_name": u.full_name,
            "points": u.points,
            "level": u.level,
            "avatar_url": u.avatar_url,
            "school": u.school,
            "state": u.state,
            "country": u.country,
            "bio": u.bio,
        }
        for rank, u in enumerate(users, start=1)
    ]})
