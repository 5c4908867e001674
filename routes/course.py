import logging

from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from sqlalchemy import func, or_

from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from extensions import db
from models import (AIConversation, Course, CourseModule, Enrollment, Flashcard,
                    StudySession)
from models.common import utcnow
from models.course import DIFFICULTIES
from routes.common import get_json, text_field, optional_int
from services import ai
from services.progress import ENROLL_POINTS, COMPLETION_POINTS
from services.updates import apply_updates, boolean, choice, text

courses_bp = Blueprint("courses", __name__, url_prefix="/api/courses")
logger = logging.getLogger(__name__)

COURSE_FIELDS = {
    "title": text(200, required=True),
    "description": text(),
    "category": text(50),
    "difficulty": choice(*DIFFICULTIES),
    "thumbnail_url": text(255),
    "is_published": boolean,
}


def _course_or_404(course_id: int) -> Course:
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def _owned_course(course_id: int) -> Course:
    course = _course_or_404(course_id)
    if course.instructor_id != current_user.id:
        raise ForbiddenError("Not authorized")
    return course


def _enrollment(course_id: int):
    return Enrollment.query.filter_by(user_id=current_user.id, course_id=course_id).first()


@courses_bp.get("")
def list_courses():
    enrollment_count = func.count(func.distinct(Enrollment.user_id))
    q = db.session.query(Course, enrollment_count) \
        .outerjoin(Enrollment, Enrollment.course_id == Course.id) \
        .group_by(Course.id)
    if current_user.is_authenticated:
        q = q.filter(or_(Course.is_published.is_(True), Course.instructor_id == current_user.id))
    else:
        q = q.filter(Course.is_published.is_(True))
    rows = q.order_by(Course.created_at.desc(), Course.id.desc()).all()

    progress_by_course = {}
    if current_user.is_authenticated and rows:
        enrollments = Enrollment.query.filter(
            Enrollment.user_id == current_user.id,
            Enrollment.course_id.in_([course.id for course, _ in rows]),
        ).all()
        progress_by_course = {e.course_id: e.progress_percentage for e in enrollments}

    courses = []
    for course, count in rows:
        item = course.to_dict()
        item["enrollment_count"] = count
        if current_user.is_authenticated:
            item["is_enrolled"] = course.id in progress_by_course
            item["progress"] = progress_by_course.get(course.id) or 0
        courses.append(item)
    return jsonify({"courses": courses})


@courses_bp.get("/<int:course_id>")
def get_course(course_id: int):
    course = _course_or_404(course_id)
    payload = course.to_dict()
    payload["modules"] = [m.to_dict() for m in course.modules]
    if current_user.is_authenticated:
        enrollment = _enrollment(course_id)
        payload["is_enrolled"] = enrollment is not None
        payload["progress"] = enrollment.progress_percentage if enrollment else 0
        payload["is_instructor"] = course.instructor_id == current_user.id
    return jsonify({"course": payload})


@courses_bp.post("")
@login_required
def create_course():
    data = get_json()
    if not text_field(data, "title"):
        raise ValidationError("Course title is required")
    course = Course(instructor_id=current_user.id, difficulty="beginner", is_published=True)
    apply_updates(course, data, COURSE_FIELDS)
    db.session.add(course)
    db.session.commit()
    return jsonify({"course": course.to_dict()}), 201


@courses_bp.put("/<int:course_id>")
@login_required
def update_course(course_id: int):
    course = _owned_course(course_id)
    if not apply_updates(course, get_json(), COURSE_FIELDS):
        raise ValidationError("No fields to update")
    db.session.commit()
    return jsonify({"course": course.to_dict()})


@courses_bp.delete("/<int:course_id>")
@login_required
def delete_course(course_id: int):
    course = _owned_course(course_id)
    for model in (Flashcard, StudySession, AIConversation):
        model.query.filter_by(course_id=course.id).update({"course_id": None}, synchronize_session=False)
    db.session.delete(course)
    db.session.commit()
    return jsonify({"message": "Course deleted successfully"})


@courses_bp.post("/generate-outline")
@login_required
def generate_outline():
    data = get_json()
    topic = text_field(data, "topic")
    if not topic:
        raise ValidationError("Topic is required")
    difficulty = text_field(data, "difficulty") or "beginner"
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"difficulty must be one of: {', '.join(DIFFICULTIES)}")

    logger.info("Course outline requested: topic=%r difficulty=%s user=%s", topic, difficulty, current_user.id)
    modules = ai.generate_course_outline(topic, difficulty)
    return jsonify({"modules": modules})


@courses_bp.post("/<int:course_id>/modules")
@login_required
def add_module(course_id: int):
    course = _owned_course(course_id)
    data = get_json()
    title = text_field(data, "title")
    if not title:
        raise ValidationError("Module title is required")

    order_index = optional_int(data.get("order_index"), "order_index", 0)
    module = CourseModule(
        course_id=course.id,
        title=title[:200],
        content=data.get("content") or None,
        video_url=text_field(data, "video_url") or None,
        duration_minutes=optional_int(data.get("duration_minutes"), "duration_minutes", 0),
        order_index=len(course.modules) + 1 if order_index is None else order_index,
    )
    db.session.add(module)
    db.session.commit()
    return jsonify({"module": module.to_dict()}), 201


@courses_bp.post("/<int:course_id>/modules/generate")
@login_required
def generate_module(course_id: int):
    data = get_json()
    module_title = text_field(data, "moduleTitle")
    if not module_title:
        raise ValidationError("Module title is required")
    # id 0 drafts content for a course that has not been saved yet
    if course_id != 0:
        _owned_course(course_id)

    key_points = data.get("keyPoints") or []
    if not isinstance(key_points, list):
        raise ValidationError("keyPoints must be a list")
    content = ai.generate_module_content(module_title, text_field(data, "description"),
                                         [str(p) for p in key_points])
    return jsonify({"content": content})


@courses_bp.post("/<int:course_id>/enroll")
@login_required
def enroll(course_id: int):
    _course_or_404(course_id)
    if _enrollment(course_id):
        raise ConflictError("Already enrolled in this course")

    db.session.add(Enrollment(user_id=current_user.id, course_id=course_id))
    current_user.award_points(ENROLL_POINTS)
    db.session.commit()
    return jsonify({"message": "Successfully enrolled in course", "pointsEarned": ENROLL_POINTS})


@courses_bp.put("/<int:course_id>/progress")
@login_required
def update_progress(course_id: int):
    data = get_json()
    value = data.get("progress_percentage")
    if value is None or isinstance(value, bool):
        raise ValidationError("progress_percentage is required")
    try:
        progress = float(value)
    except (TypeError, ValueError):
        raise ValidationError("progress_percentage must be a number")
    if not 0 <= progress <= 100:
        raise ValidationError("progress_percentage must be between 0 and 100")

    enrollment = _enrollment(course_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")

    enrollment.progress_percentage = progress
    points = 0
    if progress >= 100 and enrollment.completed_at is None:
        enrollment.completed_at = utcnow()
        points = current_user.award_points(COMPLETION_POINTS)
    db.session.commit()
    return jsonify({"message": "Progress updated", "pointsEarned": points})


@courses_bp.get("/user/my-courses")
@login_required
def my_courses():
    rows = db.session.query(Enrollment, Course) \
        .join(Course, Enrollment.course_id == Course.id) \
        .filter(Enrollment.user_id == current_user.id) \
        .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc()).all()
    courses = []
    for enrollment, course in rows:
        item = course.to_dict()
        item.update({
            "progress_percentage": enrollment.progress_percentage,
            "enrolled_at": enrollment.enrolled_at.isoformat() if enrollment.enrolled_at else None,
            "completed_at": enrollment.completed_at.isoformat() if enrollment.completed_at else None,
        })
        courses.append(item)
    return jsonify({"courses": courses})
