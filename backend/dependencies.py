from datetime import datetime

from fastapi.requests import HTTPConnection

from backend import config
from backend.services.network import NetworkInfo, RequestAddress
from database.db import DocumentStore


def get_store(connection: HTTPConnection) -> DocumentStore:
    return connection.app.state.store


def get_now() -> datetime:
    return datetime.now()


def get_network(connection: HTTPConnection) -> NetworkInfo:
    return RequestAddress(connection, trust_forwarded_for=config.TRUST_FORWARDED_FOR)
