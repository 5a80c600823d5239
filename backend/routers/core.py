from fastapi import APIRouter, Depends, HTTPException

from backend.config import (
    AUTH_TOKEN_TTL_SECONDS,
    DB_PATH,
    ENABLE_DEBUG_ENDPOINTS,
    QR_BORDER,
    QR_BOX_SIZE,
    TRUST_FORWARDED_FOR,
)
from backend.security import require_session
from backend.services.scan_codec import SEPARATOR

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/debug/dbpath")
def dbpath(_session: dict = Depends(require_session)):
    if not ENABLE_DEBUG_ENDPOINTS:
        raise HTTPException(status_code=404, detail="Not found.")
    return {"db_path": str(DB_PATH)}


@router.get("/config/attendance")
def attendance_config():
    return {
        "scan_separator": SEPARATOR,
        "auth_token_ttl_seconds": AUTH_TOKEN_TTL_SECONDS,
        "trust_forwarded_for": TRUST_FORWARDED_FOR,
        "qr_box_size": QR_BOX_SIZE,
        "qr_border": QR_BORDER,
    }
