import logging
from datetime import datetime

from backend.errors import SessionExpired, SessionNotFound
from backend.models import AttendanceRecord
from backend.services.network import NetworkInfo
from backend.services.sessions import get_session, scans_collection
from database.db import DocumentStore

logger = logging.getLogger(__name__)


async def record_attendance(
    store: DocumentStore,
    student_id: str,
    student_name: str,
    subject: str,
    now: datetime,
    network: NetworkInfo,
) -> AttendanceRecord:
    """
    Validate a scan for `subject` against its live session and record the
    student as present.

    Raises:
      - SessionNotFound: no (readable) session document for the subject
      - SessionExpired: `now` is at or past the session's expiry
      - NetworkUnavailable: the scanning device's address is unknown

    The record is keyed by student id, so a rescan overwrites the earlier one.
    The device address is kept for audit only and is not compared with the
    session's address.
    """
    session = await get_session(store, subject)
    if session is None:
        logger.info("Rejected scan by %s: no session for %r", student_id, subject)
        raise SessionNotFound("No active session found for this subject.")

    if now >= session.expires_at:
        logger.info("Rejected scan by %s: session %r expired at %s", student_id, subject, session.expires_at.isoformat())
        raise SessionExpired("Session has expired.")

    ip = await network.current_ip()
    record = AttendanceRecord(
        parent_session=session.id,
        student_id=student_id,
        name=student_name,
        timestamp=now,
        origin_ip=ip,
    )
    await store.set(scans_collection(session.id), student_id, record.to_document())
    logger.info("Recorded %s (%s) for %r from %s", student_name, student_id, session.id, ip)
    return record
