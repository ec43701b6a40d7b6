import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[1]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        parsed = float(raw)
    except ValueError:
        logger.warning("Invalid %s value: %s", name, raw)
        return default
    if parsed <= 0:
        logger.warning("Invalid %s value: %s", name, raw)
        return default
    return parsed


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s value: %s", name, raw)
        return default


DATABASE_PATH = Path(os.getenv("DATABASE_PATH", str(BACKEND_DIR / "data" / "quiz_results.db")))
QUESTIONS_PATH = Path(os.getenv("QUESTIONS_PATH", str(Path(__file__).resolve().parent / "data" / "questions.json")))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
PORT = _env_int("PORT", 5000)

BLOB_BUCKET = os.getenv("BLOB_BUCKET", "")
BLOB_ENDPOINT_URL = os.getenv("BLOB_ENDPOINT_URL") or None
BLOB_REGION = os.getenv("BLOB_REGION", "us-east-1")
BLOB_ACCESS_KEY = os.getenv("BLOB_ACCESS_KEY") or None
BLOB_SECRET_KEY = os.getenv("BLOB_SECRET_KEY") or None
BLOB_PUBLIC_BASE_URL = os.getenv("BLOB_PUBLIC_BASE_URL", "").rstrip("/")
BLOB_KEY_PREFIX = os.getenv("BLOB_KEY_PREFIX", "quiz-results/")

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = _env_int("SMTP_PORT", 587)
EMAIL_USER = os.getenv("EMAIL_USER", "")
EMAIL_PASS = os.getenv("EMAIL_PASS", "")

UPLOAD_TIMEOUT_SECONDS = _env_float("UPLOAD_TIMEOUT_SECONDS", 30.0)
NOTIFY_TIMEOUT_SECONDS = _env_float("NOTIFY_TIMEOUT_SECONDS", 20.0)
