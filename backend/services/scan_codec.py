import io
from typing import NamedTuple, Protocol

import cv2  # type: ignore
import numpy as np  # type: ignore
import qrcode

from backend.config import QR_BORDER, QR_BOX_SIZE
from backend.errors import Malformed

SEPARATOR = "|"


class ScanPayload(NamedTuple):
    ip: str
    subject: str


class _HasAddressAndSubject(Protocol):
    ip: str
    subject: str


def encode(session: _HasAddressAndSubject) -> str:
    # Subjects containing the separator are not escaped; the timetable rejects them.
    return f"{session.ip}{SEPARATOR}{session.subject}"


def decode(payload: str) -> ScanPayload:
    parts = payload.split(SEPARATOR, 1)
    if len(parts) < 2:
        raise Malformed("Invalid QR code format.")

    ip, subject = parts
    if not subject.strip():
        raise Malformed("Invalid QR code format: missing subject.")
    return ScanPayload(ip=ip, subject=subject)


def render_png(payload: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,  # fit to payload
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_image(data: bytes) -> str:
    """Read the scan payload from a JPG/PNG photo of a QR code."""
    if not data:
        raise Malformed("Invalid image data.")

    img_array = np.frombuffer(data, np.uint8)
    frame = cv2.imdecode(img_array, cv2.IMREAD_COLOR)
    if frame is None:
        raise Malformed("Invalid image data.")

    text, _points, _ = cv2.QRCodeDetector().detectAndDecode(frame)
    if not text:
        raise Malformed("No QR code found in image.")
    return text
