from datetime import timedelta

import jwt
from flask import current_app

from models.common import utcnow


def issue_token(user) -> str:
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "exp": utcnow() + timedelta(days=current_app.config["JWT_EXPIRES_DAYS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm="HS256")


def read_token(token):
    """Return the user id carried by a valid token, else None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=["HS256"])
        return int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        return None


def bearer_token(request):
    parts = (request.headers.get("Authorization") or "").strip().split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None
