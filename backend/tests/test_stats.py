from datetime import datetime

import pytest

from backend.services.sessions import SESSIONS, scans_collection
from backend.services.stats import attendance_history, grouped_by_date, session_stats

pytestmark = pytest.mark.anyio


async def _session(store, subject, starts_at=None, expires_at=None):
    data = {"ip": "10.0.0.5", "subject": subject}
    if starts_at is not None:
        data["startsAt"] = starts_at
    if expires_at is not None:
        data["expiresAt"] = expires_at
    await store.set(SESSIONS, subject, data)


async def _scan(store, subject, student_id, name, timestamp):
    await store.set(
        scans_collection(subject),
        student_id,
        {"studentId": student_id, "name": name, "timestamp": timestamp, "ip": "10.0.0.9"},
    )


async def test_history_matches_by_name(store):
    await _session(store, "AI 700", "2026-10-19T08:30:00", "2026-10-19T09:30:00")
    await _session(store, "Networks 731", "2026-10-19T08:30:00", "2026-10-19T09:30:00")
    await _session(store, "Programming 741", "2026-10-19T10:00:00", "2026-10-19T11:30:00")
    await _scan(store, "AI 700", "u1", "Ada", "2026-10-19T08:40:00")
    await _scan(store, "Networks 731", "u2", "Bo", "2026-10-19T08:41:00")
    await _scan(store, "Programming 741", "u1", "Ada", "2026-10-19T10:10:00")

    history = await attendance_history(store, "Ada")

    assert history == [
        {"subject": "AI 700", "timestamp": datetime(2026, 10, 19, 8, 40)},
        {"subject": "Programming 741", "timestamp": datetime(2026, 10, 19, 10, 10)},
    ]
    assert await attendance_history(store, "Nobody") == []


async def test_session_stats_counts_scans_per_session(store):
    await _session(store, "AI 700", "2026-10-19T08:30:00", "2026-10-19T09:30:00")
    await _session(store, "Networks 731", "2026-10-19T08:30:00", "2026-10-19T09:30:00")
    await _scan(store, "AI 700", "u1", "Ada", "2026-10-19T08:40:00")
    await _scan(store, "AI 700", "u2", "Bo", None)

    stats = await session_stats(store)

    assert stats == [
        {
            "subject": "AI 700",
            "total_attendees": 2,
            # scans without a timestamp still count towards the total
            "scan_timestamps": [datetime(2026, 10, 19, 8, 40)],
        },
        {"subject": "Networks 731", "total_attendees": 0, "scan_timestamps": []},
    ]


async def test_grouped_by_date_marks_attendance_per_session(store):
    await _session(store, "Programming 741", "2026-10-19T10:00:00", "2026-10-19T11:30:00")
    await _session(store, "AI 700", "2026-10-19T08:30:00", "2026-10-19T09:30:00")
    await _session(store, "Physics", "2026-10-20T08:00:00", "2026-10-20T09:00:00")
    await _scan(store, "AI 700", "u1", "Ada", "2026-10-19T08:40:00")
    await _scan(store, "Physics", "u2", "Bo", "2026-10-20T08:10:00")

    grouped = await grouped_by_date(store, "u1")

    assert list(grouped) == ["2026-10-19", "2026-10-20"]
    assert grouped["2026-10-19"] == [
        {"subject": "AI 700", "time_range": "08:30:00 - 09:30:00", "attended": True},
        {"subject": "Programming 741", "time_range": "10:00:00 - 11:30:00", "attended": False},
    ]
    assert grouped["2026-10-20"] == [
        {"subject": "Physics", "time_range": "08:00:00 - 09:00:00", "attended": False},
    ]


async def test_grouped_by_date_skips_sessions_without_window(store):
    await _session(store, "Broken", expires_at="2026-10-19T09:30:00")
    await _session(store, "Garbled", "yesterday", "2026-10-19T09:30:00")

    assert await grouped_by_date(store, "u1") == {}


async def test_empty_store_has_no_stats(store):
    assert await session_stats(store) == []
    assert await grouped_by_date(store, "u1") == {}
