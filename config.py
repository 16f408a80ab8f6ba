import os
import secrets
import warnings

import redis
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Config:
    # Generate a secure key if not provided (with warning)
    _secret_key = os.environ.get("SECRET_KEY")

    if not _secret_key:
        _secret_key = secrets.token_urlsafe(32)
        warnings.warn(
            "🔐 SECRET_KEY not set! Using auto-generated key. "
            "Sessions and outstanding magic links will be invalidated on restart. "
            "Run 'python3 generate_secrets.py' to generate secure keys.",
            UserWarning,
        )

    SECRET_KEY = _secret_key

    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "clipboard_db"
            db_user = os.environ.get("DB_USER") or "clipboard_user"
            db_password = os.environ.get("DB_PASSWORD") or "clipboard_password"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "clipboard.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Public URL used in emails and magic links
    APP_URL = os.environ.get("APP_URL", "http://localhost:5000")

    # Email configuration (Resend)
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    RESEND_API_BASE_URL = os.environ.get("RESEND_API_BASE_URL", "https://api.resend.com")
    RESEND_AUDIENCE_ID = os.environ.get("RESEND_AUDIENCE_ID", "general")
    FROM_EMAIL = os.environ.get("FROM_EMAIL", "noreply@jimsclipboard.com")
    FROM_NAME = os.environ.get("FROM_NAME", "Jim's Clipboard")

    # Magic link sign-in
    MAGIC_LINK_MAX_AGE = int(os.environ.get("MAGIC_LINK_MAX_AGE") or 3600)  # seconds
    ADMIN_EMAILS = [
        e.strip().lower()
        for e in os.environ.get("ADMIN_EMAILS", "").split(",")
        if e.strip()
    ]

    # Cron trigger authentication (rotate by updating the secret here and
    # in the cron provider at the same time)
    CRON_SECRET = os.environ.get("CRON_SECRET")

    # API configuration
    NFL_API_BASE_URL = (
        os.environ.get("NFL_API_BASE_URL")
        or "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
    )
    NFL_API_TIMEOUT = int(os.environ.get("NFL_API_TIMEOUT") or 15)
    TMDB_API_KEY = os.environ.get("TMDB_API_KEY")
    TMDB_API_BASE_URL = os.environ.get("TMDB_API_BASE_URL", "https://api.themoviedb.org/3")

    # Live game polling (seconds)
    LIVE_GAME_REFRESH_INTERVAL = int(os.environ.get("LIVE_GAME_REFRESH_INTERVAL") or 10)
    LIVE_GAME_FULL_REFRESH_INTERVAL = int(
        os.environ.get("LIVE_GAME_FULL_REFRESH_INTERVAL") or 30
    )
    LIVE_GAMES_BROADCAST_INTERVAL = int(
        os.environ.get("LIVE_GAMES_BROADCAST_INTERVAL") or 30
    )

    TIMEZONE = os.environ.get("TIMEZONE", "America/New_York")

    # Caching configuration
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "RedisCache")
    CACHE_DEFAULT_TIMEOUT = int(
        os.environ.get("CACHE_DEFAULT_TIMEOUT", 300)
    )  # 5 minutes
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "clipboard:"

    # Scheduler configuration
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "True").lower() == "true"

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = os.environ.get("LOG_TO_CONSOLE", "True").lower() == "true"
    LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "True").lower() == "true"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "False").lower() == "true"

    def __init__(self):
        super().__init__()
        # Fallback to SimpleCache if Redis isn't available in development
        try:
            redis_client = redis.Redis.from_url(self.CACHE_REDIS_URL)
            redis_client.ping()
        except redis.exceptions.ConnectionError:
            self.CACHE_TYPE = "SimpleCache"
            warnings.warn(
                "🔶 Redis not available, falling back to SimpleCache for development.",
                UserWarning,
            )


class ProductionConfig(Config):
    """Production configuration with security focus"""

    DEBUG = False

    # In production, require explicit environment variables
    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "🚨 PRODUCTION WARNING: SECRET_KEY not explicitly set! "
                "Using auto-generated key is not recommended for production.",
                UserWarning,
            )
        if not os.environ.get("CRON_SECRET"):
            warnings.warn(
                "🚨 PRODUCTION WARNING: CRON_SECRET not set! Cron endpoints are unauthenticated.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CACHE_TYPE = "NullCache"
    SCHEDULER_ENABLED = False
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False
    RATELIMIT_ENABLED = False
    SOCKETIO_ASYNC_MODE = "threading"
    SECRET_KEY = "testing-secret-key"
    CRON_SECRET = "testing-cron-secret"
    TMDB_API_KEY = "testing-tmdb-key"
    RESEND_API_KEY = "testing-resend-key"
    ADMIN_EMAILS = ["admin@example.com"]

    def __init__(self):
        # Keep the in-memory database regardless of DATABASE_URL
        pass


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
