"""Central config: everything comes from the environment (.env supported)."""
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_DATABASE_URL = "sqlite:///./keymap.db"


def get_gemini_api_key() -> str | None:
    return (os.getenv("GEMINI_API_KEY") or "").strip() or None


def get_gemini_model() -> str:
    """Model used for both chat replies and schema generation."""
    return (os.getenv("GEMINI_MODEL_NAME") or "").strip() or DEFAULT_GEMINI_MODEL


def get_gemini_timeout() -> float:
    """Per-request timeout (seconds). Expiry counts as a service failure."""
    try:
        return float(os.getenv("GEMINI_TIMEOUT_SECONDS", "45"))
    except ValueError:
        return 45.0


def get_database_url() -> str:
    return (os.getenv("DATABASE_URL") or "").strip() or DEFAULT_DATABASE_URL


def get_session_max_age() -> int:
    """Session cookie lifetime, one week by default."""
    try:
        return int(os.getenv("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 24 * 7)))
    except ValueError:
        return 60 * 60 * 24 * 7


def get_cookie_secure() -> bool:
    return os.getenv("COOKIE_SECURE", "false").lower() in ("true", "1", "yes")


def get_cors_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    if raw.strip() == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]
