import math

from flask_login import UserMixin

from extensions import db
from models.common import utcnow, isoformat

ROLES = ("learner", "instructor", "admin")


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(100))
    avatar_url = db.Column(db.String(255))
    role = db.Column(db.String(20), default="learner", nullable=False)

    points = db.Column(db.Integer, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)

    school = db.Column(db.String(100))
    state = db.Column(db.String(100))
    country = db.Column(db.String(100))
    bio = db.Column(db.Text)
    phone = db.Column(db.String(30))
    date_of_birth = db.Column(db.Date)
    website = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def award_points(self, amount: int):
        """Credit gamification points; the level only ever goes up."""
        if amount <= 0:
            return 0
        self.points = (self.points or 0) + amount
        earned_level = max(1, int(math.sqrt(self.points / 100)))
        self.level = max(self.level or 1, earned_level)
        return amount

    def summary(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "points": self.points,
            "level": self.level,
        }

    def to_dict(self):
        data = self.summary()
        data.update({
            "avatar_url": self.avatar_url,
            "school": self.school,
            "state": self.state,
            "country": self.country,
            "bio": self.bio,
            "phone": self.phone,
            "date_of_birth": isoformat(self.date_of_birth),
            "website": self.website,
            "created_at": isoformat(self.created_at),
        })
        return data
