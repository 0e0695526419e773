"""
Motion Hellas PCS
Flask application factory.

Usage:
    from pcs import create_app
    app = create_app()           # APP_ENV or "development"
    app = create_app("testing")
"""

import os

import click
from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import event
from sqlalchemy.engine import Engine

from pcs.config import config
from pcs.models import db
from pcs.middleware.logging_config import configure_logging
from pcs.middleware.rate_limiter import init_rate_limits
from pcs.middleware.security_headers import init_security_headers
from pcs.middleware.session_auth import init_session_middleware
from pcs.middleware.timing import init_request_timing

limiter = Limiter(key_func=get_remote_address, default_limits=[])


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, _record):
    # SQLite ignores ON DELETE CASCADE unless the pragma is on per connection
    if "sqlite" in type(dbapi_conn).__module__:
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


def create_app(config_name=None):
    """
    Build a configured application.

    Args:
        config_name: "development", "testing" or "production".
                     Falls back to APP_ENV, then "development".
    """
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    configure_logging(app)
    _init_extensions(app)
    _init_middleware(app)
    _create_schema(app)
    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cli(app)
    init_rate_limits(app, limiter)

    return app


def _init_extensions(app):
    db.init_app(app)
    limiter.init_app(app)
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    CORS(app, origins=origins, supports_credentials=True)


def _init_middleware(app):
    init_security_headers(app)
    init_request_timing(app)
    init_session_middleware(app)

    @app.before_request
    def _require_json_body():
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            if request.data and "json" not in (request.content_type or ""):
                abort(415, description="Content-Type must be application/json")


def _create_schema(app):
    from pcs.models import auth, notification, project, ticket  # noqa: F401

    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if uri.startswith("sqlite:///") and ":memory:" not in uri:
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()
    app.logger.debug("Schema ensured on %s", uri.split("@")[-1])


def _register_blueprints(app):
    from pcs.blueprints.auth_bp import auth_bp
    from pcs.blueprints.health_bp import health_bp
    from pcs.blueprints.notification_bp import notification_bp
    from pcs.blueprints.tracking_bp import tracking_bp

    for bp in (auth_bp, tracking_bp, notification_bp, health_bp):
        app.register_blueprint(bp)


def _register_error_handlers(app):

    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(415)
    def unsupported_media_type(e):
        return {"error": e.description}, 415

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        # Flask has already logged the traceback via app.log_exception
        return {"error": "Internal server error"}, 500


def _register_cli(app):
    from pcs.blueprints import current_store

    @app.cli.command("seed-demo")
    @click.option("--password", default=None, help="Password for every demo user.")
    def seed_demo_cmd(password):
        """Seed demo users, a client, project MH-2025-01 and two team scopes."""
        from pcs.services.seed_service import DEMO_PASSWORD, seed_demo
        result = seed_demo(current_store(), password=password or DEMO_PASSWORD)
        click.echo(f"Seeded {result['users']} user(s) and {result['tickets']} ticket(s).")

    @app.cli.command("create-user")
    @click.argument("username")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--role", type=click.Choice(["ADMIN", "LEAD", "ENGINEER"]), default="ENGINEER")
    @click.option("--team", default=None, help="SOFTWARE, STRUCTURAL, ELECTRICAL or ENVIRONMENTAL.")
    @click.option("--full-name", default=None)
    def create_user_cmd(username, password, role, team, full_name):
        """Provision a single user."""
        from pcs.core.exceptions import ValidationError
        from pcs.services.auth_service import create_user
        try:
            user = create_user(current_store(), username, password, role, team=team, full_name=full_name)
        except ValidationError as exc:
            for field, msg in exc.details.items():
                click.echo(f"{field}: {msg}", err=True)
            raise click.ClickException(exc.message)
        click.echo(f"Created user {user.username} (id={user.id}, {user.role}/{user.team})")
