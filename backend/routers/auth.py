import time

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.dependencies import get_store
from backend.models import Role, User
from backend.security import current_user, issue_session_token, require_session
from backend.services.identity import sign_in, sign_up
from database.db import DocumentStore

router = APIRouter()


class SignUp(BaseModel):
    name: str
    email: str
    password: str
    role: Role = "student"


class Login(BaseModel):
    email: str
    password: str


def _issue_user_token(user: User) -> dict:
    token, claims = issue_session_token(user.id, role=user.role)
    now = int(time.time())
    return {
        "access_token": token,
        "token_type": "bearer",
        "user_id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "expires_at": claims["exp"],
        "expires_in": max(0, int(claims["exp"]) - now),
    }


@router.post("/auth/signup", status_code=201)
async def signup(payload: SignUp, store: DocumentStore = Depends(get_store)):
    name = payload.name.strip()
    email = payload.email.strip()
    password = payload.password.strip()

    if not name or not email or not password:
        raise HTTPException(status_code=400, detail="Name, email and password are required.")
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required.")

    user = await sign_up(store, name=name, email=email, password=password, role=payload.role)
    return _issue_user_token(user)


@router.post("/auth/login")
async def login(payload: Login, store: DocumentStore = Depends(get_store)):
    email = payload.email.strip()
    password = payload.password.strip()

    if not email:
        raise HTTPException(status_code=400, detail="Email is required.")
    if not password:
        raise HTTPException(status_code=400, detail="Password is required.")

    user = await sign_in(store, email, password)
    return _issue_user_token(user)


@router.get("/auth/me")
async def auth_me(session: dict = Depends(require_session), user: User = Depends(current_user)):
    return {
        "user_id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "expires_at": session.get("exp"),
        "issued_at": session.get("iat"),
    }
