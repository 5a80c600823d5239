import logging
from datetime import datetime

from pydantic import ValidationError

from backend.errors import NoActiveSlot, NotScheduled
from backend.models import Session
from backend.services.network import NetworkInfo
from backend.services.timetable import Weekday, load_timetable, slot_for
from database.db import DocumentStore, collection_path

logger = logging.getLogger(__name__)

SESSIONS = "sessions"
SCANS = "scans"


def scans_collection(subject: str) -> str:
    return collection_path(SESSIONS, subject, SCANS)


async def get_session(store: DocumentStore, subject: str) -> Session | None:
    """Stored session for `subject`, or None when absent or unreadable."""
    try:
        data = await store.get(SESSIONS, subject)
    except ValueError:
        # not a valid document id, so no such session can exist
        return None
    if data is None:
        return None

    try:
        return Session.from_document(subject, data)
    except ValidationError:
        logger.warning("Ignoring malformed session document %r", subject)
        return None


async def list_sessions(store: DocumentStore) -> list[Session]:
    sessions: list[Session] = []
    for doc in await store.list(SESSIONS):
        try:
            sessions.append(Session.from_document(doc.id, doc.data))
        except ValidationError:
            logger.warning("Ignoring malformed session document %r", doc.id)
    return sessions


async def ensure_active_session(
    store: DocumentStore,
    subject: str,
    now: datetime,
    network: NetworkInfo,
) -> Session:
    """
    Return the active session for `subject`, opening a new one from today's
    timetable slot when none is active.

    The new session overwrites whatever document was stored under the subject
    key. Two callers racing here both write the same slot window, so the last
    write wins with equivalent values.
    """
    existing = await get_session(store, subject)
    if existing is not None and existing.expires_at > now:
        logger.info("Reusing session %r (expires %s)", subject, existing.expires_at.isoformat())
        return existing

    weekday = Weekday.of(now)
    timetable = await load_timetable(store, weekday)
    try:
        starts_at, expires_at = slot_for(subject, weekday, timetable, now.date())
    except NotScheduled as e:
        raise NoActiveSlot(f'No active timetable slot for "{subject}".') from e

    ip = await network.current_ip()
    session = Session(
        id=subject,
        ip=ip,
        subject=subject,
        starts_at=starts_at,
        expires_at=expires_at,
    )
    await store.set(SESSIONS, subject, session.to_document())
    logger.info(
        "Opened session %r from %s to %s (ip=%s)",
        subject,
        starts_at.isoformat(),
        expires_at.isoformat(),
        ip,
    )
    return session


async def sweep_invalid(store: DocumentStore) -> int:
    """Delete session documents that have no `expiresAt`; returns how many were removed."""
    removed = 0
    for doc in await store.list(SESSIONS):
        if doc.data.get("expiresAt") is not None:
            continue
        if await store.delete(SESSIONS, doc.id):
            removed += 1

    if removed:
        logger.warning("Removed %d invalid session document(s)", removed)
    return removed


async def roster(store: DocumentStore, subject: str) -> list[str]:
    """Names recorded under the session for `subject`, ordered by student id."""
    docs = await store.list(scans_collection(subject))
    return [str(doc.data.get("name", "")) for doc in docs]
