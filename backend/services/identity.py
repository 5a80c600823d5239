import hashlib
import hmac
import logging
import secrets
from typing import Any

from backend.errors import IdentityConflict, InvalidCredentials
from backend.models import Role, User
from database.db import DocumentStore

logger = logging.getLogger(__name__)

USERS = "users"
PASSWORD_HASH_ALGO = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 120_000


def _hash_password(password: str, *, salt: str | None = None) -> str:
    salt_value = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_value.encode("utf-8"),
        PASSWORD_HASH_ITERATIONS,
    ).hex()
    return f"{PASSWORD_HASH_ALGO}${PASSWORD_HASH_ITERATIONS}${salt_value}${digest}"


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, rounds_text, salt_value, expected_digest = password_hash.split("$", 3)
        rounds = int(rounds_text)
    except (ValueError, TypeError, AttributeError):
        return False

    if algo != PASSWORD_HASH_ALGO or rounds <= 0:
        return False

    candidate_digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_value.encode("utf-8"),
        rounds,
    ).hex()
    return hmac.compare_digest(candidate_digest, expected_digest)


def _user_from_document(user_id: str, data: dict[str, Any]) -> User:
    return User(
        id=user_id,
        name=data.get("name", ""),
        email=data.get("email", ""),
        role=data.get("role", "student"),
    )


async def _find_by_email(store: DocumentStore, email: str):
    for doc in await store.list(USERS):
        if str(doc.data.get("email", "")).lower() == email:
            return doc
    return None


async def sign_up(store: DocumentStore, *, name: str, email: str, password: str, role: Role) -> User:
    clean_email = email.strip().lower()
    if await _find_by_email(store, clean_email) is not None:
        raise IdentityConflict("An account with this email already exists.")

    user_id = secrets.token_hex(14)
    await store.set(
        USERS,
        user_id,
        {
            "name": name.strip(),
            "email": clean_email,
            "role": role,
            "passwordHash": _hash_password(password),
        },
    )
    logger.info("Registered %s account %s", role, user_id)
    return User(id=user_id, name=name.strip(), email=clean_email, role=role)


async def sign_in(store: DocumentStore, email: str, password: str) -> User:
    doc = await _find_by_email(store, email.strip().lower())
    if doc is None or not _verify_password(password, doc.data.get("passwordHash", "")):
        raise InvalidCredentials("Invalid email or password.")
    return _user_from_document(doc.id, doc.data)


async def get_user(store: DocumentStore, user_id: str) -> User | None:
    try:
        data = await store.get(USERS, user_id)
    except ValueError:
        return None
    if data is None:
        return None
    return _user_from_document(user_id, data)
