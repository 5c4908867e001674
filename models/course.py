from extensions import db
from models.common import utcnow, isoformat

DIFFICULTIES = ("beginner", "intermediate", "advanced")


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.Integer, primary_key=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(50), index=True)
    difficulty = db.Column(db.String(20), default="beginner", nullable=False)
    thumbnail_url = db.Column(db.String(255))
    is_published = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    instructor = db.relationship("User")
    modules = db.relationship("CourseModule", backref="course", cascade="all, delete-orphan",
                              order_by="CourseModule.order_index")
    enrollments = db.relationship("Enrollment", backref="course", cascade="all, delete-orphan")
    quizzes = db.relationship("Quiz", backref="course", cascade="all, delete-orphan")

    def to_dict(self):
        instructor = self.instructor
        return {
            "id": self.id,
            "instructor_id": self.instructor_id,
            "instructor_name": instructor.username if instructor else None,
            "instructor_full_name": instructor.full_name if instructor else None,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "difficulty": self.difficulty,
            "thumbnail_url": self.thumbnail_url,
            "is_published": self.is_published,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class CourseModule(db.Model):
    __tablename__ = "course_modules"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    video_url = db.Column(db.String(255))
    duration_minutes = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "content": self.content,
            "order_index": self.order_index,
            "video_url": self.video_url,
            "duration_minutes": self.duration_minutes,
            "created_at": isoformat(self.created_at),
        }


class Enrollment(db.Model):
    __tablename__ = "enrollments"
    __table_args__ = (db.UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    progress_percentage = db.Column(db.Float, default=0, nullable=False)
    completed_at = db.Column(db.DateTime)
    enrolled_at = db.Column(db.DateTime, default=utcnow)
