from extensions import db
from models.common import utcnow, isoformat

SESSION_TYPES = ("course", "flashcard", "quiz", "ai_chat")


class StudySession(db.Model):
    __tablename__ = "study_sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="SET NULL"))
    session_type = db.Column(db.String(20), nullable=False)
    duration_minutes = db.Column(db.Integer, default=0)
    points_earned = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            "session_type": self.session_type,
            "duration_minutes": self.duration_minutes,
            "points_earned": self.points_earned,
            "created_at": isoformat(self.created_at),
        }
