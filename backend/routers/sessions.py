import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel

from backend.dependencies import get_network, get_now, get_store
from backend.errors import SessionNotFound
from backend.models import Session, User
from backend.security import decode_session_token, require_session, require_teacher
from backend.services.network import NetworkInfo
from backend.services.scan_codec import encode, render_png
from backend.services.sessions import (
    ensure_active_session,
    get_session,
    roster,
    scans_collection,
    sweep_invalid,
)
from database.db import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionOpen(BaseModel):
    subject: str


def _session_payload(session: Session, now: datetime) -> dict:
    return {
        "id": session.id,
        "subject": session.subject,
        "ip": session.ip,
        "starts_at": session.starts_at,
        "expires_at": session.expires_at,
        "active": session.is_active(now),
        "payload": encode(session),
    }


async def _require_session_doc(store: DocumentStore, subject: str) -> Session:
    session = await get_session(store, subject)
    if session is None:
        raise SessionNotFound(f'No session found for "{subject}".')
    return session


@router.post("/sessions")
async def open_session(
    payload: SessionOpen,
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
    network: NetworkInfo = Depends(get_network),
    now: datetime = Depends(get_now),
):
    subject = payload.subject.strip()
    if not subject:
        raise HTTPException(status_code=400, detail="Subject is required.")

    session = await ensure_active_session(store, subject, now, network)
    return _session_payload(session, now)


@router.post("/sessions/sweep")
async def sweep_sessions(
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
):
    removed = await sweep_invalid(store)
    return {"ok": True, "removed": removed, "message": f"{removed} invalid sessions deleted."}


@router.get("/sessions/{subject}")
async def session_detail(
    subject: str,
    _session: dict = Depends(require_session),
    store: DocumentStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    session = await _require_session_doc(store, subject)
    return _session_payload(session, now)


@router.get("/sessions/{subject}/qr")
async def session_qr(
    subject: str,
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
):
    session = await _require_session_doc(store, subject)
    return Response(content=render_png(encode(session)), media_type="image/png")


@router.get("/sessions/{subject}/scans")
async def session_scans(
    subject: str,
    _teacher: User = Depends(require_teacher),
    store: DocumentStore = Depends(get_store),
):
    await _require_session_doc(store, subject)
    return {"subject": subject, "students": await roster(store, subject)}


@router.websocket("/sessions/{subject}/live")
async def session_live(
    websocket: WebSocket,
    subject: str,
    store: DocumentStore = Depends(get_store),
):
    claims = decode_session_token(websocket.query_params.get("token", ""))
    if not claims or claims.get("role") != "teacher":
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = await store.subscribe(scans_collection(subject))

    async def _watch_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            subscription.cancel()

    watcher = asyncio.create_task(_watch_disconnect())
    try:
        async for snapshot in subscription:
            await websocket.send_json(
                {"subject": subject, "students": [str(doc.data.get("name", "")) for doc in snapshot]}
            )
    except WebSocketDisconnect:
        logger.debug("Live roster for %r disconnected", subject)
    finally:
        subscription.cancel()
        watcher.cancel()
