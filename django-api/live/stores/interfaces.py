"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every mutation publishes
a Change on the store's feed so observers can recompute their views.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime

from live.domain import (
    Gig,
    Performer,
    PerformerId,
    RequestCap,
    RequestId,
    SessionState,
    Song,
    SongId,
    SongRequest,
    Transaction,
    UrlSlug,
)
from live.realtime import ChangeFeed, Observer, Subscription


class LiveStore(ABC):
    """Interface for performer, catalog, session and ledger persistence."""

    def __init__(self, feed: ChangeFeed) -> None:
        self.feed = feed

    def subscribe(self, performer_id: PerformerId, observer: Observer) -> Subscription:
        """Receive a Change for every mutation scoped to ``performer_id``."""
        return self.feed.subscribe(performer_id, observer)

    # Performers

    @abstractmethod
    def get_performer(self, performer_id: PerformerId) -> Performer | None:
        """Return a performer by ID, or None if not found."""
        ...

    @abstractmethod
    def get_performer_by_slug(self, slug: str) -> Performer | None:
        """Return the performer owning ``slug``, or None."""
        ...

    @abstractmethod
    def set_url_slug(self, performer_id: PerformerId, slug: UrlSlug) -> Performer:
        """Store the performer's slug.

        Raises:
            ConflictError: If another performer already owns the slug.
        """
        ...

    # Catalog and calendar

    @abstractmethod
    def list_songs(self, performer_id: PerformerId) -> list[Song]:
        """Return the performer's songs ordered by position ascending."""
        ...

    @abstractmethod
    def get_song(self, song_id: SongId) -> Song | None:
        """Return a song by ID, or None if not found."""
        ...

    @abstractmethod
    def list_gigs(self, performer_id: PerformerId) -> list[Gig]:
        """Return the performer's gigs ordered by date descending."""
        ...

    # Session state

    @abstractmethod
    def get_session_state(self, performer_id: PerformerId) -> SessionState | None:
        """Return the performer's session state, or None before the first go-live."""
        ...

    @abstractmethod
    def save_session_state(self, state: SessionState) -> SessionState:
        """Create or replace the performer's session state."""
        ...

    @abstractmethod
    def end_session(
        self,
        performer_id: PerformerId,
        reset_active_tags: bool,
        expired_at: datetime | None = None,
        staged_before: datetime | None = None,
    ) -> SessionState | None:
        """Close a live session in one conditional write.

        With ``expired_at``, only a session whose end time is at or before it
        is closed. With ``staged_before``, only a session whose go-offline was
        staged at or before it is closed.

        Returns:
            The offline state, or None if the session no longer matched
            (already offline, re-armed, or the go-offline was undone).
        """
        ...

    @abstractmethod
    def list_live_performers(self) -> list[PerformerId]:
        """Return performers whose session is currently live."""
        ...

    # Request ledger

    @abstractmethod
    def list_requests(self, performer_id: PerformerId) -> list[SongRequest]:
        """Return all requests for a performer ordered by created_at ascending."""
        ...

    @abstractmethod
    def get_requests(self, request_ids: Iterable[RequestId]) -> list[SongRequest]:
        """Return the requests that exist among ``request_ids``."""
        ...

    @abstractmethod
    def count_pending_requests(self, performer_id: PerformerId) -> int:
        """Count pending, non-tip requests for a performer."""
        ...

    @abstractmethod
    def has_played_request(self, performer_id: PerformerId, song_id: SongId) -> bool:
        """Check if a song has a played request that was not reopened."""
        ...

    @abstractmethod
    def append_request(
        self,
        request: SongRequest,
        cap: RequestCap,
        transactions: Sequence[Transaction] = (),
    ) -> SongRequest:
        """Insert a request, re-checking the cap against the stored count.

        The count and insert happen as one serialized step per performer.
        Tip-only requests skip the cap. ``transactions`` are written in the
        same step.

        Raises:
            ConflictError: If the cap was reached by the time of the insert.
        """
        ...

    @abstractmethod
    def mark_played(
        self, request_id: RequestId, transactions: Sequence[Transaction]
    ) -> SongRequest:
        """Set status to played and record transactions in one atomic step.

        Transactions whose (request_id, type) already exist are skipped, so
        the call is safe to retry.

        Raises:
            RequestNotFoundError: If the request does not exist.
        """
        ...

    @abstractmethod
    def delete_played_requests(self, performer_id: PerformerId, song_id: SongId) -> int:
        """Delete played requests for a song. Returns the number deleted."""
        ...

    @abstractmethod
    def delete_requests(self, performer_id: PerformerId) -> int:
        """Delete every request for a performer. Returns the number deleted."""
        ...

    # Earnings

    @abstractmethod
    def list_transactions(self, performer_id: PerformerId) -> list[Transaction]:
        """Return transactions ordered by created_at descending."""
        ...
