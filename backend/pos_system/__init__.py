# backend/pos_system/__init__.py
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Flask, request
from werkzeug.exceptions import HTTPException
from werkzeug.routing import IntegerConverter

from .config import Config
from .errors import PosError
from .extensions import db, migrate
from .validation import MAX_DB_INT


class IdConverter(IntegerConverter):
    """`<id:name>` URL segment: a non-negative integer that fits a 64-bit column."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_DB_INT)
        super().__init__(map, *args, **kwargs)


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    try:
        ZoneInfo(app.config["POS_TIMEZONE"])
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"Unknown POS_TIMEZONE: {app.config['POS_TIMEZONE']!r}") from exc

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    app.url_map.converters["id"] = IdConverter

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.inventory import inventory_bp
    from .routes.dashboard import dashboard_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(dashboard_bp)

    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config.get("CORS_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("AUTO_BOOTSTRAP"):
        from .services.bootstrap_service import bootstrap
        with app.app_context():
            bootstrap()

    return app


def register_error_handlers(app: Flask) -> None:
    from .responses import error, from_exception

    @app.errorhandler(PosError)
    def handle_pos_error(exc: PosError):
        return from_exception(exc)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return error(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return error("Internal server error", 500)
