"""Application factory for the teambuilder service."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import (
    DEFAULT_OPENAI_MODEL,
    SESSION_USER_ID,
    USERS_COLLECTION,
    VERIFICATION_RESEND_COOLDOWN,
)
from .extensions import csrf, mail

CREDENTIALS_FILE = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
)


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "t", "yes")


def _config_from_env():
    return {
        "SECRET_KEY": os.environ.get("SECRET_KEY") or "dev",
        "MAIL_SERVER": os.environ.get("MAIL_SERVER") or "smtp.gmail.com",
        "MAIL_PORT": int(os.environ.get("MAIL_PORT") or 587),
        "MAIL_USE_TLS": _env_flag("MAIL_USE_TLS", True),
        "MAIL_USE_SSL": _env_flag("MAIL_USE_SSL", False),
        "MAIL_USERNAME": os.environ.get("MAIL_USERNAME"),
        "MAIL_PASSWORD": os.environ.get("MAIL_PASSWORD"),
        "MAIL_DEFAULT_SENDER": os.environ.get("MAIL_DEFAULT_SENDER")
        or "noreply@teambuilder.app",
        "OPENAI_API_KEY": os.environ.get("OPENAI_API_KEY"),
        "OPENAI_MODEL": os.environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        "VERIFICATION_RESEND_COOLDOWN": int(
            os.environ.get("VERIFICATION_RESEND_COOLDOWN")
            or VERIFICATION_RESEND_COOLDOWN
        ),
        "LIVE_MIRROR_ENABLED": _env_flag("LIVE_MIRROR_ENABLED", True),
    }


def _load_firebase_credentials(app):
    """Find service account credentials.

    Tries FIREBASE_CREDENTIALS_JSON, then firebase_credentials.json next to
    the package, then application default credentials. Returns
    ``(credential, project_id)``; the credential is None if nothing works.
    """
    sources = []
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        sources.append(("FIREBASE_CREDENTIALS_JSON", lambda: json.loads(cred_json)))
    if os.path.exists(CREDENTIALS_FILE):

        def read_file():
            with open(CREDENTIALS_FILE) as f:
                return json.load(f)

        sources.append((CREDENTIALS_FILE, read_file))

    for label, load in sources:
        try:
            info = load()
            return credentials.Certificate(info), info.get("project_id")
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Invalid Firebase credentials in {label}: {e}")

    try:
        return (
            credentials.ApplicationDefault(),
            os.environ.get("FIREBASE_PROJECT_ID"),
        )
    except Exception as e:
        app.logger.error(f"No usable Firebase credentials found: {e}")
        return None, None


def _init_firebase(app):
    if firebase_admin._apps:
        return
    cred, project_id = _load_firebase_credentials(app)
    if cred is None:
        return
    options = {"projectId": project_id} if project_id else {}
    try:
        firebase_admin.initialize_app(cred, options)
    except ValueError:
        app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_mapping(_config_from_env())

    if test_config:
        app.config.update(test_config)
        if app.config.get("TESTING") and "LIVE_MIRROR_ENABLED" not in test_config:
            app.config["LIVE_MIRROR_ENABLED"] = False

    # Tests never talk to a real Firebase project
    if not app.config.get("TESTING"):
        _init_firebase(app)

    mail.init_app(app)
    csrf.init_app(app)

    from . import auth, chat, error_handlers, skills, sync, teams, user

    for blueprint in (auth.bp, user.bp, teams.bp, chat.bp, skills.bp, sync.bp):
        app.register_blueprint(blueprint)
    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.route("/health")
    def health_check():
        """Perform a simple health check."""
        return "OK", 200

    @app.before_request
    def load_logged_in_user():
        """Load the session user's profile into ``g.user`` (None if not set up)."""
        g.user = None
        user_id = session.get(SESSION_USER_ID)
        if user_id is None:
            return

        try:
            snapshot = (
                firestore.client().collection(USERS_COLLECTION).document(user_id).get()
            )
        except Exception as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            session.clear()
            return
        if snapshot.exists:
            g.user = snapshot.to_dict()
            g.user["id"] = user_id

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
