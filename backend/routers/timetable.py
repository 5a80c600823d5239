from datetime import datetime

from fastapi import APIRouter, Body, Depends

from backend.dependencies import get_now, get_store
from backend.models import User
from backend.security import require_session, require_teacher
from backend.services.timetable import (
    TimetableSlot,
    Weekday,
    current_subjects,
    load_timetable,
    parse_day,
    save_day,
)
from database.db import DocumentStore
from database.seed import seed_timetable

router = APIRouter()


def _slot_payload(slot: TimetableSlot) -> dict:
    return {
        "range": slot.range_key,
        "start": slot.start.strftime("%H:%M"),
        "end": slot.end.strftime("%H:%M"),
        "subjects": list(slot.subjects),
    }


@router.get("/timetable/current")
async def timetable_current(
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    weekday = Weekday.of(now)
    timetable = await load_timetable(store, weekday)
    return {
        "weekday": weekday.value,
        "time": now.strftime("%H:%M"),
        "subjects": sorted(current_subjects(now, timetable)),
    }


@router.post("/timetable/seed")
async def timetable_seed(
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
):
    added = await seed_timetable(store)
    return {"ok": True, "message": "Timetable seeded successfully.", "subjects_added": added}


@router.get("/timetable/{weekday}")
async def timetable_day(
    weekday: Weekday,
    _session: dict = Depends(require_session),
    store: DocumentStore = Depends(get_store),
):
    timetable = await load_timetable(store, weekday)
    return {
        "weekday": weekday.value,
        "slots": [_slot_payload(slot) for slot in timetable[weekday]],
    }


@router.put("/timetable/{weekday}")
async def timetable_replace_day(
    weekday: Weekday,
    slots: dict[str, list[str]] = Body(...),
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
):
    parsed = parse_day(weekday, slots)
    await save_day(store, weekday, parsed)
    return {
        "weekday": weekday.value,
        "slots": [_slot_payload(slot) for slot in parsed],
    }
