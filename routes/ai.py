import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from errors import NotFoundError, ValidationError
from extensions import db
from models import AIConversation, AIMessage, Course
from models.common import utcnow
from routes.common import get_json, text_field, optional_int
from services import ai
from services.progress import ASSISTANT_MESSAGE_POINTS

ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")
logger = logging.getLogger(__name__)


def _owned_conversation(conversation_id: int) -> AIConversation:
    conversation = AIConversation.query.filter_by(id=conversation_id, user_id=current_user.id).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    return conversation


@ai_bp.get("/conversations")
@login_required
def list_conversations():
    q = AIConversation.query.filter_by(user_id=current_user.id)
    course_id = optional_int(request.args.get("courseId"), "courseId")
    if course_id is not None:
        q = q.filter(AIConversation.course_id == course_id)
    conversations = q.order_by(AIConversation.updated_at.desc(), AIConversation.id.desc()).all()
    return jsonify({"conversations": [c.to_dict() for c in conversations]})


@ai_bp.post("/conversations")
@login_required
def create_conversation():
    data = get_json()
    course_id = optional_int(data.get("courseId"), "courseId")
    if course_id is not None and not db.session.get(Course, course_id):
        raise NotFoundError("Course not found")
    conversation = AIConversation(
        user_id=current_user.id,
        course_id=course_id,
        title=(text_field(data, "title") or "New Conversation")[:200],
    )
    db.session.add(conversation)
    db.session.commit()
    return jsonify({"conversation": conversation.to_dict()}), 201


@ai_bp.get("/conversations/<int:conversation_id>/messages")
@login_required
def list_messages(conversation_id: int):
    conversation = _owned_conversation(conversation_id)
    return jsonify({"messages": [m.to_dict() for m in conversation.messages]})


@ai_bp.post("/conversations/<int:conversation_id>/messages")
@login_required
def send_message(conversation_id: int):
    data = get_json()
    content = text_field(data, "content")
    if not content:
        raise ValidationError("Message content is required")
    conversation = _owned_conversation(conversation_id)

    course_context = None
    if conversation.course_id:
        course = db.session.get(Course, conversation.course_id)
        course_context = course.title if course else None
    history = [{"role": m.role, "content": m.content} for m in conversation.messages]

    # ask first so a failed call leaves the thread unchanged
    answer = ai.get_study_assistant_response(content, course_context, history)

    conversation.messages.append(AIMessage(role="user", content=content))
    conversation.messages.append(AIMessage(role="assistant", content=answer))
    conversation.updated_at = utcnow()
    current_user.award_points(ASSISTANT_MESSAGE_POINTS)
    db.session.commit()

    return jsonify({
        "userMessage": {"role": "user", "content": content},
        "aiMessage": {"role": "assistant", "content": answer},
    })


@ai_bp.delete("/conversations/<int:conversation_id>")
@login_required
def delete_conversation(conversation_id: int):
    conversation = _owned_conversation(conversation_id)
    db.session.delete(conversation)
    db.session.commit()
    return jsonify({"message": "Conversation deleted successfully"})
