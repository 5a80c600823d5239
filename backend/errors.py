from typing import Literal

ErrorCode = Literal[
    "NOT_SCHEDULED",
    "NO_ACTIVE_SLOT",
    "NETWORK_UNAVAILABLE",
    "SESSION_NOT_FOUND",
    "SESSION_EXPIRED",
    "MALFORMED_PAYLOAD",
    "MALFORMED_TIMETABLE",
    "IDENTITY_CONFLICT",
    "INVALID_CREDENTIALS",
]


class AttendanceError(Exception):
    """Base for every failure reported back to the caller of a core operation."""

    code: ErrorCode
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotScheduled(AttendanceError):
    code = "NOT_SCHEDULED"
    status_code = 404


class NoActiveSlot(AttendanceError):
    code = "NO_ACTIVE_SLOT"
    status_code = 409


class NetworkUnavailable(AttendanceError):
    code = "NETWORK_UNAVAILABLE"
    status_code = 503


class SessionNotFound(AttendanceError):
    code = "SESSION_NOT_FOUND"
    status_code = 404


class SessionExpired(AttendanceError):
    code = "SESSION_EXPIRED"
    status_code = 410


class Malformed(AttendanceError):
    code = "MALFORMED_PAYLOAD"
    status_code = 400


class MalformedTimetable(AttendanceError):
    code = "MALFORMED_TIMETABLE"
    status_code = 422


class IdentityConflict(AttendanceError):
    code = "IDENTITY_CONFLICT"
    status_code = 409


class InvalidCredentials(AttendanceError):
    code = "INVALID_CREDENTIALS"
    status_code = 401
