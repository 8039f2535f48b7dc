"""Domain error codes for the live module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_ID = "INVALID_ID"
    PERFORMER_OFFLINE = "PERFORMER_OFFLINE"
    SONG_NOT_REQUESTABLE = "SONG_NOT_REQUESTABLE"
    SONG_ALREADY_PLAYED = "SONG_ALREADY_PLAYED"
    NOT_READY_TO_GO_LIVE = "NOT_READY_TO_GO_LIVE"
    SLUG_ALREADY_SET = "SLUG_ALREADY_SET"
    CAPACITY_REACHED = "CAPACITY_REACHED"
    PERFORMER_NOT_FOUND = "PERFORMER_NOT_FOUND"
    SONG_NOT_FOUND = "SONG_NOT_FOUND"
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"
    CAPACITY_CONFLICT = "CAPACITY_CONFLICT"
    SLUG_TAKEN = "SLUG_TAKEN"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised for bad or missing input."""

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.INVALID_INPUT
    ) -> None:
        super().__init__(code=code, message=message)


class InvalidIdError(ValidationError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str = "ID") -> None:
        super().__init__(f"Invalid {kind} format", code=ErrorCode.INVALID_ID)


class CapacityError(DomainError):
    """Raised when the performer's request cap has been reached."""

    def __init__(self, cap: int) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_REACHED,
            message="The request queue is full right now",
        )
        self.cap = cap


class NotFoundError(DomainError):
    """Raised when a performer, song or request does not exist."""


class PerformerNotFoundError(NotFoundError):
    def __init__(self, performer_id: str) -> None:
        super().__init__(
            code=ErrorCode.PERFORMER_NOT_FOUND, message="Artist not found"
        )
        self.performer_id = performer_id


class SongNotFoundError(NotFoundError):
    def __init__(self, song_id: str) -> None:
        super().__init__(code=ErrorCode.SONG_NOT_FOUND, message="Song not found")
        self.song_id = song_id


class RequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str) -> None:
        super().__init__(
            code=ErrorCode.REQUEST_NOT_FOUND, message="Request not found"
        )
        self.request_id = request_id


class ConflictError(DomainError):
    """Raised when a concurrent write won the race for the same resource."""

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.CAPACITY_CONFLICT
    ) -> None:
        super().__init__(code=code, message=message)
