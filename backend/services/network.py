from typing import Protocol

from fastapi.requests import HTTPConnection

from backend.errors import NetworkUnavailable


class NetworkInfo(Protocol):
    async def current_ip(self) -> str:
        ...


class RequestAddress:
    """Address of the device behind an HTTP or WebSocket connection."""

    def __init__(self, connection: HTTPConnection, *, trust_forwarded_for: bool = False):
        self.connection = connection
        self.trust_forwarded_for = trust_forwarded_for

    async def current_ip(self) -> str:
        if self.trust_forwarded_for:
            forwarded = self.connection.headers.get("x-forwarded-for", "")
            first = forwarded.split(",")[0].strip()
            if first:
                return first

        client = self.connection.client
        if client and client.host:
            return client.host
        raise NetworkUnavailable("Could not retrieve the device's IP address.")


class StaticAddress:
    def __init__(self, ip: str | None):
        self.ip = ip

    async def current_ip(self) -> str:
        if not self.ip:
            raise NetworkUnavailable("Could not retrieve the device's IP address.")
        return self.ip
