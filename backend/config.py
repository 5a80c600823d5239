import os
import secrets
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]

DB_PATH = Path(os.getenv("ROLLCALL_DB_PATH", BASE_DIR / "database" / "rollcall.db"))
SIGNING_KEY = os.getenv("ROLLCALL_SIGNING_KEY", "").strip() or secrets.token_urlsafe(32)
AUTH_TOKEN_TTL_SECONDS = int(os.getenv("ROLLCALL_AUTH_TOKEN_TTL_SECONDS", "43200"))
LOG_LEVEL = os.getenv("ROLLCALL_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return fallback


def _parse_csv(value: str | None, fallback: list[str]) -> list[str]:
    if not value:
        return fallback
    parsed = [item.strip() for item in value.split(",") if item.strip()]
    return parsed or fallback


def _parse_positive_int(value: str | None, fallback: int) -> int:
    try:
        parsed = int(value) if value is not None else fallback
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback


CORS_ALLOW_ORIGINS = _parse_csv(
    os.getenv("ROLLCALL_CORS_ALLOW_ORIGINS"),
    ["http://localhost:8081", "http://127.0.0.1:8081"],
)
CORS_ALLOW_METHODS = _parse_csv(
    os.getenv("ROLLCALL_CORS_ALLOW_METHODS"),
    ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
)
CORS_ALLOW_HEADERS = _parse_csv(
    os.getenv("ROLLCALL_CORS_ALLOW_HEADERS"),
    ["Authorization", "Content-Type", "Accept", "X-Forwarded-For"],
)
CORS_ALLOW_CREDENTIALS = _parse_bool(os.getenv("ROLLCALL_CORS_ALLOW_CREDENTIALS"), True)
ENABLE_DEBUG_ENDPOINTS = _parse_bool(os.getenv("ROLLCALL_ENABLE_DEBUG_ENDPOINTS"), False)

# Only honour X-Forwarded-For behind a proxy that sets it.
TRUST_FORWARDED_FOR = _parse_bool(os.getenv("ROLLCALL_TRUST_FORWARDED_FOR"), False)

# QR rendering
QR_BOX_SIZE = _parse_positive_int(os.getenv("ROLLCALL_QR_BOX_SIZE"), 10)
QR_BORDER = _parse_positive_int(os.getenv("ROLLCALL_QR_BORDER"), 4)
