from extensions import db
from models.common import utcnow, isoformat

QUESTION_TYPES = ("multiple_choice", "true_false", "short_answer")


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    time_limit_minutes = db.Column(db.Integer)
    total_questions = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    questions = db.relationship("QuizQuestion", backref="quiz", cascade="all, delete-orphan",
                                order_by="QuizQuestion.order_index")
    attempts = db.relationship("QuizAttempt", backref="quiz", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "course_title": self.course.title if self.course else None,
            "title": self.title,
            "description": self.description,
            "time_limit_minutes": self.time_limit_minutes,
            "total_questions": self.total_questions,
            "created_at": isoformat(self.created_at),
        }


class QuizQuestion(db.Model):
    __tablename__ = "quiz_questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(20), default="multiple_choice", nullable=False)
    options = db.Column(db.JSON, default=list)
    correct_answer = db.Column(db.Text, nullable=False)
    points = db.Column(db.Integer, default=1, nullable=False)
    order_index = db.Column(db.Integer, nullable=False)

    def to_dict(self, include_answer=False):
        data = {
            "id": self.id,
            "question_text": self.question_text,
            "question_type": self.question_type,
            "options": self.options or [],
            "points": self.points,
            "order_index": self.order_index,
        }
        if include_answer:
            data["correct_answer"] = self.correct_answer
        return data


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    score = db.Column(db.Float, nullable=False)  # 0..100, two decimals
    total_questions = db.Column(db.Integer, nullable=False)
    correct_answers = db.Column(db.Integer, nullable=False)
    time_taken_seconds = db.Column(db.Integer, default=0, nullable=False)
    completed_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        quiz = self.quiz
        return {
            "id": self.id,
            "user_id": self.user_id,
            "quiz_id": self.quiz_id,
            "quiz_title": quiz.title if quiz else None,
            "course_title": quiz.course.title if quiz and quiz.course else None,
            "score": f"{self.score:.2f}",
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "time_taken_seconds": self.time_taken_seconds,
            "completed_at": isoformat(self.completed_at),
        }
