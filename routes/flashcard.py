import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from sqlalchemy import or_

from errors import NotFoundError, ValidationError
from extensions import db
from models import Flashcard
from models.common import utcnow
from routes.common import get_json, text_field, optional_int, flag
from services import ai
from services.progress import apply_review
from services.scheduler import parse_grade, GRADE_NAMES

flashcards_bp = Blueprint("flashcards", __name__, url_prefix="/api/flashcards")
logger = logging.getLogger(__name__)

MAX_GENERATED_CARDS = 20


def _owned_card(card_id: int) -> Flashcard:
    card = Flashcard.query.filter_by(id=card_id, user_id=current_user.id).first()
    if not card:
        raise NotFoundError("Flashcard not found")
    return card


def _card_texts(data):
    front = text_field(data, "front_text")
    back = text_field(data, "back_text")
    if not front or not back:
        raise ValidationError("Front and back text are required")
    return front, back


@flashcards_bp.get("")
@login_required
def list_cards():
    q = Flashcard.query.filter_by(user_id=current_user.id)
    course_id = optional_int(request.args.get("courseId"), "courseId")
    if course_id is not None:
        q = q.filter(Flashcard.course_id == course_id)
    if flag(request.args.get("due")):
        q = q.filter(or_(Flashcard.next_review.is_(None), Flashcard.next_review <= utcnow()))
    cards = q.order_by(Flashcard.next_review.is_not(None), Flashcard.next_review.asc(),
                       Flashcard.created_at.desc(), Flashcard.id.desc()).all()
    return jsonify({"flashcards": [c.to_dict() for c in cards]})


@flashcards_bp.post("")
@login_required
def create_card():
    data = get_json()
    front, back = _card_texts(data)
    card = Flashcard(
        user_id=current_user.id,
        course_id=optional_int(data.get("course_id"), "course_id"),
        front_text=front,
        back_text=back,
        difficulty_level=1.0,
        review_count=0,
        next_review=utcnow(),
    )
    db.session.add(card)
    db.session.commit()
    return jsonify({"flashcard": card.to_dict()}), 201


@flashcards_bp.post("/generate")
@login_required
def generate_cards():
    data = get_json()
    content = text_field(data, "content")
    if not content:
        raise ValidationError("Content is required")
    num_cards = optional_int(data.get("numCards"), "numCards", 1, MAX_GENERATED_CARDS) or 5
    course_id = optional_int(data.get("courseId"), "courseId")

    generated = ai.generate_flashcards(content, num_cards)

    now = utcnow()
    cards = [
        Flashcard(user_id=current_user.id, course_id=course_id, front_text=c["front"],
                  back_text=c["back"], difficulty_level=1.0, review_count=0, next_review=now)
        for c in generated
    ]
    db.session.add_all(cards)
    db.session.commit()
    logger.info("Generated %s flashcards for user %s", len(cards), current_user.id)
    return jsonify({"flashcards": [c.to_dict() for c in cards]})


@flashcards_bp.post("/<int:card_id>/review")
@login_required
def review_card(card_id: int):
    data = get_json()
    # older clients send the grade as "difficulty"
    raw_grade = data.get("grade", data.get("difficulty"))
    grade = parse_grade(raw_grade)
    card = _owned_card(card_id)

    outcome = apply_review(db.session, current_user, card, grade)
    return jsonify({
        "message": "Review recorded",
        "grade": GRADE_NAMES.get(grade, "again"),
        "nextReview": card.next_review.isoformat(),
        "difficultyLevel": outcome.difficulty,
        "reviewCount": outcome.review_count,
        "intervalDays": outcome.interval_days,
        "pointsEarned": outcome.points,
    })


@flashcards_bp.put("/<int:card_id>")
@login_required
def update_card(card_id: int):
    data = get_json()
    front, back = _card_texts(data)
    card = _owned_card(card_id)
    card.front_text = front
    card.back_text = back
    db.session.commit()
    return jsonify({"flashcard": card.to_dict()})


@flashcards_bp.delete("/<int:card_id>")
@login_required
def delete_card(card_id: int):
    card = _owned_card(card_id)
    db.session.delete(card)
    db.session.commit()
    return jsonify({"message": "Flashcard deleted"})
