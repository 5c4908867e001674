from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from errors import AuthError, ValidationError
from extensions import db, bcrypt
from routes.common import get_json
from services.updates import PROFILE_FIELDS, apply_updates

profile_bp = Blueprint("profile", __name__, url_prefix="/api/auth")


@profile_bp.put("/profile")
@login_required
def update_profile():
    data = get_json()
    changed = apply_updates(current_user, data, PROFILE_FIELDS)
    if not changed:
        raise ValidationError("No fields to update")
    db.session.commit()
    return jsonify({"user": current_user.to_dict(), "message": "Profile updated successfully"})


@profile_bp.post("/change-password")
@login_required
def change_password():
    data = get_json()
    current_pw = data.get("current_password") or ""
    new_pw = data.get("new_password") or ""
    if not bcrypt.check_password_hash(current_user.password, current_pw):
        raise AuthError("Current password is incorrect.")
    if len(new_pw) < 8:
        raise ValidationError("New password must be at least 8 characters.")
    current_user.password = bcrypt.generate_password_hash(new_pw).decode("utf-8")
    db.session.commit()
    return jsonify({"message": "Password changed."})
