from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from backend.dependencies import get_network, get_now, get_store
from backend.models import AttendanceRecord, User
from backend.security import require_student, require_teacher
from backend.services.attendance import record_attendance
from backend.services.network import NetworkInfo
from backend.services.scan_codec import decode, decode_image
from backend.services.stats import attendance_history, grouped_by_date, session_stats
from database.db import DocumentStore

router = APIRouter()


class ScanSubmit(BaseModel):
    payload: str


def _record_payload(record: AttendanceRecord) -> dict:
    return {
        "ok": True,
        "message": "Attendance marked!",
        "subject": record.parent_session,
        "student_id": record.student_id,
        "name": record.name,
        "timestamp": record.timestamp,
        "ip": record.origin_ip,
    }


@router.post("/attendance/scan")
async def scan(
    body: ScanSubmit,
    student: User = Depends(require_student),
    store: DocumentStore = Depends(get_store),
    network: NetworkInfo = Depends(get_network),
    now: datetime = Depends(get_now),
):
    scanned = decode(body.payload)
    record = await record_attendance(store, student.id, student.name, scanned.subject, now, network)
    return _record_payload(record)


@router.post("/attendance/scan/image")
async def scan_image(
    file: UploadFile = File(...),
    student: User = Depends(require_student),
    store: DocumentStore = Depends(get_store),
    network: NetworkInfo = Depends(get_network),
    now: datetime = Depends(get_now),
):
    if file.content_type not in ("image/jpeg", "image/png"):
        raise HTTPException(status_code=400, detail="Upload JPG/PNG only.")

    data = await file.read()
    scanned = decode(decode_image(data))
    record = await record_attendance(store, student.id, student.name, scanned.subject, now, network)
    return _record_payload(record)


@router.get("/attendance/history")
async def history(
    student: User = Depends(require_student),
    store: DocumentStore = Depends(get_store),
):
    return await attendance_history(store, student.name)


@router.get("/attendance/by-date")
async def by_date(
    student: User = Depends(require_student),
    store: DocumentStore = Depends(get_store),
):
    return await grouped_by_date(store, student.id)


@router.get("/stats/sessions")
async def stats_sessions(
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
):
    return await session_stats(store)
