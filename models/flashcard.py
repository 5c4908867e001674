from extensions import db
from models.common import utcnow, isoformat


class Flashcard(db.Model):
    __tablename__ = "flashcards"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="SET NULL"), index=True)
    front_text = db.Column(db.Text, nullable=False)
    back_text = db.Column(db.Text, nullable=False)

    difficulty_level = db.Column(db.Float, default=1.0, nullable=False)  # 1..5
    review_count = db.Column(db.Integer, default=0, nullable=False)
    last_reviewed = db.Column(db.DateTime)
    next_review = db.Column(db.DateTime, index=True)

    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "front_text": self.front_text,
            "back_text": self.back_text,
            "difficulty_level": self.difficulty_level,
            "review_count": self.review_count,
            "last_reviewed": isoformat(self.last_reviewed),
            "next_review": isoformat(self.next_review),
            "created_at": isoformat(self.created_at),
        }
