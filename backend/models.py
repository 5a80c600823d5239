from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["teacher", "student"]


class Session(BaseModel):
    """An attendance window for one subject, stored under `sessions/{subject}`."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    ip: str
    subject: str
    starts_at: datetime = Field(alias="startsAt")
    expires_at: datetime = Field(alias="expiresAt")

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Session":
        return cls.model_validate({**data, "id": doc_id})


class AttendanceRecord(BaseModel):
    """One student's scan, stored under `sessions/{subject}/scans/{studentId}`."""

    model_config = ConfigDict(populate_by_name=True)

    parent_session: str
    student_id: str = Field(alias="studentId")
    name: str
    timestamp: datetime
    origin_ip: str = Field(alias="ip")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude={"parent_session"})

    @classmethod
    def from_document(cls, parent_session: str, data: dict[str, Any]) -> "AttendanceRecord":
        return cls.model_validate({**data, "parent_session": parent_session})


class User(BaseModel):
    id: str
    name: str
    email: str
    role: Role
