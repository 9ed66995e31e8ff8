# backend/storecheer/__init__.py
import logging

from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Model metadata must be loaded before migrations run
    from . import models  # noqa: F401

    from .services import identity_provider
    identity_provider.init_app(app)

    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.points import points_bp
    from .routes.attendance import attendance_bp
    from .routes.missions import missions_bp
    from .routes.skills import skills_bp
    from .routes.notifications import notifications_bp
    from .routes.members import members_bp
    from .routes.stores import stores_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(points_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(missions_bp)
    app.register_blueprint(skills_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(SQLAlchemyError)
    def handle_data_store_failure(e):
        # Unexpected data store failure: nothing partial is kept
        db.session.rollback()
        app.logger.exception("Data store failure on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "Data store unavailable"}), 503

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PATCH,OPTIONS"
        return response

    # flask system|stores|users ...
    from .cli import register_commands
    register_commands(app)

    return app
