import logging
import os

import redis
from flask import Flask, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from clipboard.errors import ClipboardError
from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
login_manager = LoginManager()
socketio = SocketIO()
cache = Cache()


def get_real_ip():
    """
    Get the real client IP address, accounting for reverse proxies.
    Checks X-Forwarded-For, X-Real-IP, and falls back to remote_addr.
    """
    # X-Forwarded-For: client, proxy1, proxy2, ...
    if request.headers.get("X-Forwarded-For"):
        return request.headers.get("X-Forwarded-For").split(",")[0].strip()
    if request.headers.get("X-Real-IP"):
        return request.headers.get("X-Real-IP")
    return get_remote_address()


# Determine rate limiter storage backend
limiter_storage_uri = "memory://"
redis_url = os.environ.get("REDIS_URL")
if redis_url:
    try:
        redis_client = redis.Redis.from_url(redis_url)
        redis_client.ping()
        limiter_storage_uri = redis_url
        print(f"✓ Rate limiter using Redis storage at {redis_url}")
    except redis.exceptions.ConnectionError as e:
        print(f"⚠ Redis not available for rate limiter, using memory storage: {e}")

limiter = Limiter(
    key_func=get_real_ip,
    default_limits=["10000 per day", "1000 per hour"],
    storage_uri=limiter_storage_uri,
)


def create_app(config_name=None):
    app = Flask(__name__)

    # Determine configuration
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SECURE"] = (
        False
        if app.config.get("DEBUG")
        else app.config.get("FLASK_ENV") == "production"
    )
    app.config["PERMANENT_SESSION_LIFETIME"] = 86400 * 30  # 30 days

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    allowed_origins = app.config.get("SOCKETIO_CORS_ORIGINS", "*")
    if allowed_origins == "*" and not app.config.get("DEBUG"):
        allowed_origins = os.environ.get(
            "ALLOWED_ORIGINS", "https://jimsclipboard.com,https://www.jimsclipboard.com"
        ).split(",")

    # Try to use Redis as message queue for Socket.IO
    message_queue = None
    redis_url = os.environ.get("REDIS_URL")
    if redis_url and not app.config.get("TESTING"):
        try:
            redis_client = redis.Redis.from_url(redis_url)
            redis_client.ping()
            message_queue = redis_url
            print(f"✓ Socket.IO using Redis message queue at {redis_url}")
        except redis.exceptions.ConnectionError as e:
            print(f"⚠ Redis not available for Socket.IO message queue: {e}")

    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE", "eventlet"),
        logger=app.config.get("DEBUG", False),
        engineio_logger=False,
        ping_timeout=60,
        ping_interval=25,
        message_queue=message_queue,
    )
    cache.init_app(app)
    limiter.init_app(app)

    # Login manager configuration
    login_manager.login_view = None
    login_manager.login_message = "Please sign in to access this page."

    # Service objects shared by the blueprints
    init_services(app)

    # Import and register blueprints
    from clipboard.routes.auth import bp as auth_bp

    app.register_blueprint(auth_bp)

    from clipboard.routes.api import bp as api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    from clipboard.routes.email import bp as email_bp

    app.register_blueprint(email_bp, url_prefix="/api/email")

    from clipboard.routes.cron import bp as cron_bp

    app.register_blueprint(cron_bp, url_prefix="/api/cron")

    # Register error handlers
    register_error_handlers(app)

    # Setup logging
    from clipboard.utils.logging_config import setup_logging

    setup_logging(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    # Initialize and start background scheduler and live game pollers
    if not app.config.get("TESTING", False):
        from clipboard.services.live_game_poller import LivePollerRegistry
        from clipboard.services.scheduler_service import scheduler_service
        from clipboard.socketio_handlers import broadcast_game_snapshot

        scheduler_service.init_app(app)
        app.extensions["live_pollers"] = LivePollerRegistry(
            client=app.extensions["espn_client"],
            scheduler=scheduler_service.scheduler,
            publish=broadcast_game_snapshot,
            refresh_interval=app.config["LIVE_GAME_REFRESH_INTERVAL"],
            full_refresh_interval=app.config["LIVE_GAME_FULL_REFRESH_INTERVAL"],
        )

    # Register SocketIO handlers
    from clipboard import socketio_handlers  # noqa: F401 - imported for side effects

    return app


def init_services(app):
    """Construct the document store, API clients and the team colour cache"""
    from clipboard.services.document_store import DocumentStore
    from clipboard.services.espn_client import EspnClient
    from clipboard.services.team_colors import TeamColorMappingCache
    from clipboard.services.tmdb_client import TmdbClient

    store = DocumentStore(db)
    app.extensions["document_store"] = store
    app.extensions["espn_client"] = EspnClient(
        api_base_url=app.config["NFL_API_BASE_URL"],
        timeout=app.config.get("NFL_API_TIMEOUT", 15),
    )
    app.extensions["tmdb_client"] = TmdbClient(
        api_key=app.config.get("TMDB_API_KEY"),
        api_base_url=app.config["TMDB_API_BASE_URL"],
    )
    app.extensions["team_colors"] = TeamColorMappingCache(store)


def register_error_handlers(app):
    """Register global error handlers"""

    @app.after_request
    def after_request(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"

        if not app.config.get("DEBUG"):
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response

    @app.errorhandler(ClipboardError)
    def handle_clipboard_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__} on {request.path}: {error}")
        else:
            app.logger.warning(f"{type(error).__name__} on {request.path}: {error}")
        return jsonify({"success": False, "error": str(error)}), error.status_code

    @app.errorhandler(KeyError)
    def handle_key_error(error):
        # Suppress SocketIO session disconnection errors
        if "Session is disconnected" in str(error):
            return jsonify({"success": False, "error": "Session disconnected"}), 200
        raise error

    @app.errorhandler(400)
    def bad_request_error(error):
        app.logger.warning(
            f"400 Bad Request: {str(error)} - Path: {request.path} - Method: {request.method}"
        )
        return jsonify({"success": False, "error": "Bad request"}), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        return jsonify({"success": False, "error": "Unauthorized"}), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({"success": False, "error": "Access forbidden"}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"success": False, "error": "Resource not found"}), 404

    @app.errorhandler(429)
    def too_many_requests_error(error):
        return jsonify({"success": False, "error": "Too many requests"}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.errorhandler(503)
    def service_unavailable_error(error):
        return jsonify({"success": False, "error": "Service unavailable"}), 503


from clipboard import models  # noqa: F401, E402 - imported for model registration
