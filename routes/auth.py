import logging

from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from sqlalchemy import or_

from errors import AuthError, ConflictError, ValidationError
from extensions import db, bcrypt
from models import User
from routes.common import get_json, text_field
from services.tokens import issue_token

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
logger = logging.getLogger(__name__)


@auth_bp.post("/register")
def register():
    data = get_json()
    username = text_field(data, "username")
    email = text_field(data, "email").lower()
    pw = data.get("password") or ""
    if not username or not email or not pw:
        raise ValidationError("Username, email, and password are required")
    if len(username) > 50 or len(email) > 100:
        raise ValidationError("Username or email is too long")
    if "@" not in email:
        raise ValidationError("Email address is invalid")

    if User.query.filter(or_(User.email == email, User.username == username)).first():
        raise ConflictError("User already exists")

    hashed_pw = bcrypt.generate_password_hash(pw).decode("utf-8")
    user = User(username=username, email=email, password=hashed_pw,
                full_name=text_field(data, "fullName") or None)
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s", user.id)

    return jsonify({
        "message": "User registered successfully",
        "token": issue_token(user),
        "user": user.summary(),
    }), 201


@auth_bp.post("/login")
def login():
    data = get_json()
    email = text_field(data, "email").lower()
    pw = data.get("password") or ""
    if not email or not pw:
        raise ValidationError("Email and password are required")

    user = User.query.filter_by(email=email).first()
    if not user or not bcrypt.check_password_hash(user.password, pw):
        raise AuthError("Invalid credentials")

    return jsonify({
        "message": "Login successful",
        "token": issue_token(user),
        "user": user.summary(),
    })


@auth_bp.get("/me")
@login_required
def me():
    return jsonify({"user": current_user.to_dict()})
