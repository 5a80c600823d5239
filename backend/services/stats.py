from datetime import datetime
from typing import Any, TypedDict

from backend.services.sessions import SESSIONS, scans_collection
from database.db import DocumentStore


class HistoryEntry(TypedDict):
    subject: str
    timestamp: datetime | None


class SessionStats(TypedDict):
    subject: str
    total_attendees: int
    scan_timestamps: list[datetime]


class DayEntry(TypedDict):
    subject: str
    time_range: str
    attended: bool


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _hms(value: datetime) -> str:
    return value.strftime("%H:%M:%S")


async def attendance_history(store: DocumentStore, student_name: str) -> list[HistoryEntry]:
    """Sessions with a scan whose `name` is `student_name`, in session key order."""
    history: list[HistoryEntry] = []
    for session in await store.list(SESSIONS):
        scans = await store.list(scans_collection(session.id))
        match = next((scan for scan in scans if scan.data.get("name") == student_name), None)
        if match is None:
            continue
        history.append(
            {
                "subject": str(session.data.get("subject", session.id)),
                "timestamp": _parse_timestamp(match.data.get("timestamp")),
            }
        )
    return history


async def session_stats(store: DocumentStore) -> list[SessionStats]:
    stats: list[SessionStats] = []
    for session in await store.list(SESSIONS):
        scans = await store.list(scans_collection(session.id))
        timestamps = [_parse_timestamp(scan.data.get("timestamp")) for scan in scans]
        stats.append(
            {
                "subject": str(session.data.get("subject", session.id)),
                "total_attendees": len(scans),
                "scan_timestamps": [ts for ts in timestamps if ts is not None],
            }
        )
    return stats


async def grouped_by_date(store: DocumentStore, student_id: str) -> dict[str, list[DayEntry]]:
    """
    Every session grouped by the calendar date of its start, each marked
    attended when a scan keyed by `student_id` exists under it.

    Dates are `YYYY-MM-DD` in ascending order; sessions without a readable
    start/expiry are left out.
    """
    rows: list[tuple[datetime, DayEntry]] = []
    for session in await store.list(SESSIONS):
        starts_at = _parse_timestamp(session.data.get("startsAt"))
        expires_at = _parse_timestamp(session.data.get("expiresAt"))
        if starts_at is None or expires_at is None:
            continue

        scan = await store.get(scans_collection(session.id), student_id)
        rows.append(
            (
                starts_at,
                {
                    "subject": str(session.data.get("subject", session.id)),
                    "time_range": f"{_hms(starts_at)} - {_hms(expires_at)}",
                    "attended": scan is not None,
                },
            )
        )

    grouped: dict[str, list[DayEntry]] = {}
    for starts_at, entry in sorted(rows, key=lambda row: row[0]):
        grouped.setdefault(starts_at.date().isoformat(), []).append(entry)
    return grouped
