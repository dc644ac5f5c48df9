# ==========================================================================================================
# -------------- Configuration file for the Hopwed Flask application ----------------------------------------
# ==========================================================================================================
import os
from decimal import Decimal
from dotenv import load_dotenv


if os.environ.get("FLASK_ENV") != "production":
    load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def _database_url():
    url = os.getenv("DATABASE_URL")
    if not url:
        url = f"sqlite:///{os.path.join(basedir, 'instance', 'hopwed.db')}"

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+pg8000://", 1)
    return url


class Config:
    """Base configuration class for Flask app (used in all environments)."""

    SECRET_KEY = os.getenv("SECRET_KEY")

    FLASK_ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = os.getenv("DEBUG", "False").lower() in ("true", "1", "t")
    TESTING = False
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_HTTPONLY = True

    # Ledger
    CLAIM_COOLDOWN_HOURS = int(os.getenv("CLAIM_COOLDOWN_HOURS", "24"))
    MIN_DEPOSIT_AMOUNT = Decimal(os.getenv("MIN_DEPOSIT_AMOUNT", "500"))
    MIN_WITHDRAWAL_AMOUNT = Decimal(os.getenv("MIN_WITHDRAWAL_AMOUNT", "200"))
    NOTICE_FEED_LIMIT = int(os.getenv("NOTICE_FEED_LIMIT", "5"))

    # Seeding
    ADMIN_PHONE = os.getenv("ADMIN_PHONE", "01712345678")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

    DEFAULT_SETTINGS = {
        "bkash_number": "01700000000",
        "nagad_number": "01800000000",
        "app_notice": "Welcome to Hopwed Investment App!",
        "deposit_status": "on",
        "withdraw_status": "on",
    }


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(basedir, "logs"))
