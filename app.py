# app.py — Consultorio API (agenda + dossiers cliniques pour psychologues indépendants)
from __future__ import annotations

import logging
import os
import sys
import threading
import traceback
from datetime import datetime, timezone

from flask import Flask, request, session
from flask_login import current_user
from werkzeug.middleware.proxy_fix import ProxyFix

from config import load_config
from errors import Unauthorized, register_error_handlers
from extensions import cors, db, login_manager, oauth, server_session


# -------------------------------------------------------------------
# Logging + crash record
# -------------------------------------------------------------------
def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("authlib").setLevel(logging.WARNING)


def install_crash_log(path: str):
    """Exception non gérée hors requête : trace dans `path` puis arrêt du process."""
    def _write(exc_type, exc, tb):
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(f"{datetime.now(timezone.utc).isoformat()}\n")
                fh.write("".join(traceback.format_exception(exc_type, exc, tb)))
        finally:
            logging.getLogger(__name__).critical("Uncaught exception, see %s", path)

    def _excepthook(exc_type, exc, tb):
        # l'interpréteur s'arrête ensuite avec le code 1
        _write(exc_type, exc, tb)
        sys.__excepthook__(exc_type, exc, tb)

    def _thread_excepthook(args):
        _write(args.exc_type, args.exc_value, args.exc_traceback)
        logging.shutdown()
        # sys.exit depuis un thread ne termine que le thread
        os._exit(1)

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook


# -------------------------------------------------------------------
# Factory
# -------------------------------------------------------------------
def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.update(load_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise RuntimeError("Missing DATABASE_URL or SQLALCHEMY_DATABASE_URI environment variable")
    if app.config.get("SECRET_KEY") == "fallback-secret-key":
        app.logger.warning("SESSION_SECRET non défini : secret de repli utilisé")

    # Proxy (Render/Cloudflare)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    # DB puis sessions serveur (la table http_sessions vit dans la même base)
    db.init_app(app)
    app.config["SESSION_SQLALCHEMY"] = db
    server_session.init_app(app)

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGIN"]}},
        supports_credentials=True,
    )

    oauth.init_app(app)
    from auth_api import register_google
    register_google(app)

    _init_login_manager(app)
    _register_blueprints(app)
    register_error_handlers(app)

    from cli import register_commands
    register_commands(app)

    @app.before_request
    def _keep_session_permanent():
        session.permanent = True

    @app.before_request
    def _log_request():
        app.logger.info("%s %s - auth=%s", request.method, request.path, current_user.is_authenticated)

    @app.get("/")
    def index():
        return "Consultorio API is running", 200, {"Content-Type": "text/plain; charset=utf-8"}

    return app


def _init_login_manager(app):
    from models import Professional

    login_manager.init_app(app)

    @login_manager.user_loader
    def _load_user(user_id: str):
        try:
            pro = db.session.get(Professional, int(user_id))
        except (TypeError, ValueError):
            return None
        # un compte désactivé après le login perd sa session
        if pro is None or not pro.is_active:
            return None
        return pro

    @login_manager.unauthorized_handler
    def _unauthorized():
        raise Unauthorized()


def _register_blueprints(app):
    from admin_server import admin_bp
    from appointments_api import appointments_bp
    from auth_api import auth_bp
    from patients_api import patients_bp
    from professionals_api import professionals_bp
    from sessions_api import sessions_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(professionals_bp, url_prefix="/api/professionals")
    app.register_blueprint(patients_bp, url_prefix="/api/patients")
    app.register_blueprint(appointments_bp, url_prefix="/api/appointments")
    app.register_blueprint(sessions_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
