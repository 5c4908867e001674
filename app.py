import logging
import os

from flask import Flask, jsonify

from commands import register_commands
from config import Config
from errors import register_error_handlers
from extensions import db, bcrypt, login_manager, cors, migrate
from models import User
from routes import register_blueprints
from services.schema import upgrade_schema, check_schema_version
from services.tokens import bearer_token, read_token


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _ensure_sqlite_dir(uri):
    if uri.startswith("sqlite:///"):
        folder = os.path.dirname(uri[len("sqlite:///"):])
        if folder:
            os.makedirs(folder, exist_ok=True)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)
    _ensure_sqlite_dir(app.config["SQLALCHEMY_DATABASE_URI"])

    db.init_app(app)
    migrate.init_app(app, db, directory=app.config["MIGRATIONS_DIR"])
    bcrypt.init_app(app)
    login_manager.init_app(app)
    origins = [url.strip() for url in app.config.get("FRONTEND_URL", "").split(",") if url.strip()]
    cors.init_app(app, origins=origins or "*", supports_credentials=True)

    @login_manager.request_loader
    def load_user_from_request(req):
        user_id = read_token(bearer_token(req))
        return db.session.get(User, user_id) if user_id is not None else None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Access token required"}), 401

    @app.after_request
    def add_no_cache_headers(response):
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    register_error_handlers(app)
    register_blueprints(app)
    register_commands(app)

    with app.app_context():
        if app.config.get("AUTO_SETUP_DB"):
            upgrade_schema()
        check_schema_version(db.session)

    return app


if __name__ == '__main__':
    create_app().run(debug=True, host='0.0.0.0', port=5002)
