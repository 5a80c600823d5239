from datetime import datetime

import pytest

from backend.errors import NetworkUnavailable, SessionExpired, SessionNotFound
from backend.services.attendance import record_attendance
from backend.services.network import StaticAddress
from backend.services.sessions import ensure_active_session, roster, scans_collection
from database.seed import seed_timetable

pytestmark = pytest.mark.anyio


@pytest.fixture()
async def open_session(store):
    await seed_timetable(store)
    # Networks 730 runs 09:30-10:30 on Mondays
    return await ensure_active_session(
        store, "Networks 730", datetime(2026, 10, 19, 9, 45), StaticAddress("10.0.0.5")
    )


async def test_records_scan_inside_window(store, open_session):
    now = datetime(2026, 10, 19, 10, 0)

    record = await record_attendance(store, "u1", "Ada", "Networks 730", now, StaticAddress("10.0.0.77"))

    assert record.student_id == "u1"
    assert record.parent_session == "Networks 730"
    assert await store.get(scans_collection("Networks 730"), "u1") == {
        "studentId": "u1",
        "name": "Ada",
        "timestamp": "2026-10-19T10:00:00",
        "ip": "10.0.0.77",
    }


async def test_device_address_is_not_compared_with_session(store, open_session):
    # session opened from 10.0.0.5; scanning from a different network still counts
    await record_attendance(
        store, "u1", "Ada", "Networks 730", datetime(2026, 10, 19, 10, 0), StaticAddress("192.168.99.1")
    )
    assert await roster(store, "Networks 730") == ["Ada"]


async def test_missing_session_is_rejected(store):
    with pytest.raises(SessionNotFound):
        await record_attendance(
            store, "u1", "Ada", "Networks 730", datetime(2026, 10, 19, 10, 0), StaticAddress("10.0.0.5")
        )
    assert await store.list(scans_collection("Networks 730")) == []


async def test_scan_at_expiry_instant_is_rejected(store, open_session):
    just_before = datetime(2026, 10, 19, 10, 29, 59)
    await record_attendance(store, "u1", "Ada", "Networks 730", just_before, StaticAddress("10.0.0.5"))

    with pytest.raises(SessionExpired):
        await record_attendance(
            store, "u2", "Bo", "Networks 730", datetime(2026, 10, 19, 10, 30), StaticAddress("10.0.0.5")
        )
    assert await roster(store, "Networks 730") == ["Ada"]


async def test_rescan_overwrites_with_latest_timestamp(store, open_session):
    await record_attendance(
        store, "u1", "Ada", "Networks 730", datetime(2026, 10, 19, 9, 50), StaticAddress("10.0.0.5")
    )
    await record_attendance(
        store, "u1", "Ada", "Networks 730", datetime(2026, 10, 19, 10, 5), StaticAddress("10.0.0.6")
    )

    docs = await store.list(scans_collection("Networks 730"))
    assert len(docs) == 1
    assert docs[0].data["timestamp"] == "2026-10-19T10:05:00"
    assert docs[0].data["ip"] == "10.0.0.6"


async def test_unknown_device_address_records_nothing(store, open_session):
    with pytest.raises(NetworkUnavailable):
        await record_attendance(
            store, "u1", "Ada", "Networks 730", datetime(2026, 10, 19, 10, 0), StaticAddress(None)
        )
    assert await roster(store, "Networks 730") == []
