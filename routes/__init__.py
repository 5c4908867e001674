from .auth import auth_bp
from .ai import ai_bp
from .course import courses_bp
from .flashcard import flashcards_bp
from .health import health_bp
from .profile import profile_bp
from .quiz import quizzes_bp
from .stats import stats_bp


def register_blueprints(app):
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(courses_bp)
    app.register_blueprint(flashcards_bp)
    app.register_blueprint(quizzes_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(ai_bp)
