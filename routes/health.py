import logging

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.common import utcnow
from services.schema import current_revision

health_bp = Blueprint("health", __name__)
logger = logging.getLogger(__name__)


def _status():
    return {
        "status": "ok",
        "message": "Study platform API is running",
        "timestamp": utcnow().isoformat() + "Z",
        "environment": current_app.config.get("ENVIRONMENT"),
    }


@health_bp.get("/health")
def health():
    return jsonify(_status())


@health_bp.get("/api/health")
def api_health():
    payload = _status()
    try:
        db.session.execute(text("SELECT 1"))
        payload["database"] = {
            "connection": "connected",
            "schema_version": current_revision(db.session),
        }
    except SQLAlchemyError as e:
        logger.exception("Database health check failed")
        db.session.rollback()
        payload["database"] = {"connection": f"error: {e.__class__.__name__}", "schema_version": None}
    return jsonify(payload)
