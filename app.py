import os
import logging
import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config import Config
from extensions import db, init_extensions
from ledger.errors import LedgerError


# --------------------------------------------------------------------------------------------------------
#       Application factory
# --------------------------------------------------------------------------------------------------------
def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get("SECRET_KEY"):
        raise ValueError("SECRET_KEY must be set")

    if not app.debug and not app.testing:
        app.config.update(
            SESSION_COOKIE_SECURE=True,
            REMEMBER_COOKIE_SECURE=True,
        )

    setup_logging(app)

    # ------------------------------------------------------------------------------------------
    # Make sure the SQLite instance folder exists
    # ------------------------------------------------------------------------------------------
    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if database_uri.startswith("sqlite:///") and "instance" in database_uri:
        os.makedirs(app.instance_path, exist_ok=True)

    init_extensions(app)
    register_blueprints(app)
    register_error_handlers(app)
    register_commands(app)

    @app.route("/healthz")
    def healthz():
        return {"status": "ok"}, 200

    return app


def setup_logging(app):
    """File + console logging on the Flask app logger"""
    logs_dir = app.config.get("LOG_DIR", "logs")
    os.makedirs(logs_dir, exist_ok=True)

    file_handler = logging.FileHandler(os.path.join(logs_dir, "app.log"), mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"
    ))
    file_handler.setLevel(logging.INFO)

    app.logger.handlers.clear()
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = False

    if app.debug:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        app.logger.addHandler(console_handler)


def register_blueprints(app):
    """Register all blueprints"""
    from blueprints.auth import bp as auth_bp
    from blueprints.profile import bp as profile_bp
    from blueprints.packages import bp as packages_bp
    from blueprints.payments import bp as payments_bp
    from blueprints.bonus import bp as bonus_bp
    from blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(packages_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(bonus_bp)
    app.register_blueprint(admin_bp)


def register_error_handlers(app):

    @app.errorhandler(LedgerError)
    def handle_ledger_error(error):
        app.logger.warning(f"{type(error).__name__}: {error.message}")
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        app.logger.error(f"Unhandled error: {error}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


def register_commands(app):

    @app.cli.command("init-db")
    def init_db_command():
        """Create tables, default settings and the default admin."""
        from make_admin import seed_defaults

        db.create_all()
        created_settings, admin = seed_defaults(app)
        click.echo(f"Database ready: {created_settings} setting(s) added")
        if admin.is_admin:
            click.echo(f"Admin account: {admin.phone}")
        else:
            click.echo(f"Warning: {admin.phone} belongs to a regular account and was not promoted")
