"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in live/models.py (persistence layer).
"""

from dataclasses import dataclass, field, replace
import datetime as dt
from datetime import datetime
from enum import Enum
from uuid import UUID

from live.domain.value_objects import (
    Money,
    PerformerId,
    RequestCap,
    RequestId,
    SongId,
)


class RequestStatus(Enum):
    """Lifecycle of a request in the ledger."""

    PENDING = "pending"
    PLAYED = "played"


class TransactionType(Enum):
    """Earnings line kinds."""

    REQUEST = "Request"
    TIP = "Tip"


@dataclass(frozen=True)
class Performer:
    """Domain representation of a Performer profile."""

    id: PerformerId
    name: str
    url_slug: str | None = None
    bio: str = ""
    picture_url: str | None = None
    socials: dict[str, str] = field(default_factory=dict)

    @property
    def has_public_page(self) -> bool:
        return bool(self.url_slug)


@dataclass(frozen=True)
class Song:
    """Domain representation of a catalog Song."""

    id: SongId
    performer_id: PerformerId
    title: str
    original_artist: str
    price: Money
    position: int = 0
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionState:
    """Domain representation of a performer's live session."""

    performer_id: PerformerId
    is_live: bool = False
    session_end_time: datetime | None = None
    request_cap: RequestCap = RequestCap(0)
    active_tags: frozenset[str] = frozenset()
    # Set while a manual go-offline waits out its grace window
    offline_requested_at: datetime | None = None

    @property
    def offline_pending(self) -> bool:
        return self.is_live and self.offline_requested_at is not None

    def with_changes(self, **changes) -> "SessionState":
        return replace(self, **changes)


@dataclass(frozen=True)
class SongRequest:
    """Domain representation of a ledger entry (song request or tip)."""

    id: RequestId
    performer_id: PerformerId
    song_id: SongId | None
    song_title: str
    requester_name: str
    amount_paid: Money
    tip: Money
    status: RequestStatus
    is_tip_only: bool
    created_at: datetime
    original_artist: str = ""
    requester_email: str | None = None
    note: str | None = None

    @property
    def is_pending_song_request(self) -> bool:
        return not self.is_tip_only and self.status is RequestStatus.PENDING

    def played(self) -> "SongRequest":
        return replace(self, status=RequestStatus.PLAYED)


@dataclass(frozen=True)
class Transaction:
    """Domain representation of an earnings record."""

    id: UUID
    performer_id: PerformerId
    request_id: RequestId
    type: TransactionType
    amount: Money
    details: str
    created_at: datetime


@dataclass(frozen=True)
class Gig:
    """Domain representation of a calendar entry."""

    id: UUID
    performer_id: PerformerId
    date: dt.date
    venue: str
    time: dt.time | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
