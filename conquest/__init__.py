"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, g, request
from werkzeug.middleware.proxy_fix import ProxyFix

from .activity import init_activity_log
from .extensions import mail
from .storage.store import init_store

ACTOR_HEADER = "X-Conquest-User"


def _env_flag(name, default):
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env, file or default credentials."""
    cred = None
    project_id = None
    cred_info = {}

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    testing = bool((test_config or {}).get("TESTING"))
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        MAIL_SERVER=os.environ.get("MAIL_SERVER") or "smtp.gmail.com",
        MAIL_PORT=int(os.environ.get("MAIL_PORT") or 587),
        MAIL_USE_TLS=_env_flag("MAIL_USE_TLS", "true"),
        MAIL_USE_SSL=_env_flag("MAIL_USE_SSL", "false"),
        MAIL_USERNAME=os.environ.get("MAIL_USERNAME"),
        MAIL_PASSWORD=os.environ.get("MAIL_PASSWORD"),
        MAIL_DEFAULT_SENDER=os.environ.get("MAIL_DEFAULT_SENDER")
        or "noreply@conquestofthecreek.com",
        STORE_BACKEND=os.environ.get("STORE_BACKEND")
        or ("memory" if testing else "firestore"),
        TOURNAMENT_TIMEZONE=os.environ.get("TOURNAMENT_TIMEZONE"),
        TOURNAMENT_MONTHS=os.environ.get("TOURNAMENT_MONTHS"),
        LATE_SCORING_MONTHS=os.environ.get("LATE_SCORING_MONTHS"),
        NOTIFY_CAPTAINS=_env_flag("NOTIFY_CAPTAINS", "false" if testing else "true"),
    )

    if test_config:
        app.config.update(test_config)

    # Firestore is only needed when the store or the activity log use it
    db = None
    if app.config["STORE_BACKEND"] == "firestore":
        _init_firebase(app)
        db = firestore.client()

    mail.init_app(app)
    init_store(app)
    init_activity_log(app, db)

    # Register blueprints
    from . import storage as storage_bp

    app.register_blueprint(storage_bp.bp)

    from . import match as match_bp

    app.register_blueprint(match_bp.bp)

    from . import leaderboard as leaderboard_bp

    app.register_blueprint(leaderboard_bp.bp)

    from . import challenge as challenge_bp

    app.register_blueprint(challenge_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def load_actor():
        """Store the caller's name, used for activity logging, in g."""
        g.actor = request.headers.get(ACTOR_HEADER) or None

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
