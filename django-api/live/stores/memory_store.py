"""In-memory implementation of the LiveStore.

Used by the test suite and for local experiments. A single lock serializes
every mutation, which gives append_request and mark_played the same
check-and-write guarantees the database store gets from transactions.
"""

import threading
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime

from live.domain import (
    Gig,
    Performer,
    PerformerId,
    RequestCap,
    RequestId,
    RequestStatus,
    SessionState,
    Song,
    SongId,
    SongRequest,
    Transaction,
    UrlSlug,
)
from live.domain.errors import ConflictError, ErrorCode, RequestNotFoundError
from live.realtime import Change, ChangeFeed, ChangeKind, Collection
from live.stores.interfaces import LiveStore


class InMemoryLiveStore(LiveStore):
    """Dictionary-backed store."""

    def __init__(self, feed: ChangeFeed | None = None) -> None:
        super().__init__(feed or ChangeFeed())
        self._lock = threading.RLock()
        self._performers: dict[PerformerId, Performer] = {}
        self._songs: dict[SongId, Song] = {}
        self._gigs: list[Gig] = []
        self._sessions: dict[PerformerId, SessionState] = {}
        self._requests: dict[RequestId, SongRequest] = {}
        self._transactions: list[Transaction] = []

    # Seeding helpers; catalog editing is not part of the store contract

    def add_performer(self, performer: Performer) -> Performer:
        with self._lock:
            self._performers[performer.id] = performer
        return performer

    def add_song(self, song: Song) -> Song:
        with self._lock:
            self._songs[song.id] = song
        self.feed.publish(
            Change(song.performer_id, Collection.SONGS, ChangeKind.INSERT, str(song.id))
        )
        return song

    def add_gig(self, gig: Gig) -> Gig:
        with self._lock:
            self._gigs.append(gig)
        return gig

    # Performers

    def get_performer(self, performer_id: PerformerId) -> Performer | None:
        return self._performers.get(performer_id)

    def get_performer_by_slug(self, slug: str) -> Performer | None:
        with self._lock:
            for performer in self._performers.values():
                if performer.url_slug == slug:
                    return performer
        return None

    def set_url_slug(self, performer_id: PerformerId, slug: UrlSlug) -> Performer:
        with self._lock:
            owner = self.get_performer_by_slug(slug.value)
            if owner is not None and owner.id != performer_id:
                raise ConflictError(
                    "This URL is already taken", code=ErrorCode.SLUG_TAKEN
                )
            performer = replace(self._performers[performer_id], url_slug=slug.value)
            self._performers[performer_id] = performer
        return performer

    # Catalog and calendar

    def list_songs(self, performer_id: PerformerId) -> list[Song]:
        with self._lock:
            songs = [s for s in self._songs.values() if s.performer_id == performer_id]
        return sorted(songs, key=lambda s: s.position)

    def get_song(self, song_id: SongId) -> Song | None:
        return self._songs.get(song_id)

    def list_gigs(self, performer_id: PerformerId) -> list[Gig]:
        with self._lock:
            gigs = [g for g in self._gigs if g.performer_id == performer_id]
        return sorted(gigs, key=lambda g: g.date, reverse=True)

    # Session state

    def get_session_state(self, performer_id: PerformerId) -> SessionState | None:
        return self._sessions.get(performer_id)

    def save_session_state(self, state: SessionState) -> SessionState:
        with self._lock:
            kind = (
                ChangeKind.UPDATE
                if state.performer_id in self._sessions
                else ChangeKind.INSERT
            )
            self._sessions[state.performer_id] = state
        self.feed.publish(Change(state.performer_id, Collection.SESSION_STATE, kind))
        return state

    def end_session(
        self,
        performer_id: PerformerId,
        reset_active_tags: bool,
        expired_at: datetime | None = None,
        staged_before: datetime | None = None,
    ) -> SessionState | None:
        with self._lock:
            state = self._sessions.get(performer_id)
            if state is None or not _should_end(state, expired_at, staged_before):
                return None
            state = state.with_changes(
                is_live=False,
                session_end_time=None,
                offline_requested_at=None,
                active_tags=frozenset() if reset_active_tags else state.active_tags,
            )
            self._sessions[performer_id] = state
        self.feed.publish(
            Change(performer_id, Collection.SESSION_STATE, ChangeKind.UPDATE)
        )
        return state

    def list_live_performers(self) -> list[PerformerId]:
        with self._lock:
            return [pid for pid, state in self._sessions.items() if state.is_live]

    # Request ledger

    def list_requests(self, performer_id: PerformerId) -> list[SongRequest]:
        with self._lock:
            requests = [
                r for r in self._requests.values() if r.performer_id == performer_id
            ]
        return sorted(requests, key=lambda r: r.created_at)

    def get_requests(self, request_ids: Iterable[RequestId]) -> list[SongRequest]:
        with self._lock:
            return [self._requests[rid] for rid in request_ids if rid in self._requests]

    def count_pending_requests(self, performer_id: PerformerId) -> int:
        with self._lock:
            return sum(
                1
                for r in self._requests.values()
                if r.performer_id == performer_id and r.is_pending_song_request
            )

    def has_played_request(self, performer_id: PerformerId, song_id: SongId) -> bool:
        with self._lock:
            return any(
                r.performer_id == performer_id
                and r.song_id == song_id
                and r.status is RequestStatus.PLAYED
                for r in self._requests.values()
            )

    def append_request(
        self,
        request: SongRequest,
        cap: RequestCap,
        transactions: Sequence[Transaction] = (),
    ) -> SongRequest:
        with self._lock:
            if not request.is_tip_only and cap.is_reached(
                self.count_pending_requests(request.performer_id)
            ):
                raise ConflictError("Another request took the last slot")
            self._requests[request.id] = request
            self._transactions.extend(transactions)
        self._publish_request(request, ChangeKind.INSERT)
        if transactions:
            self.feed.publish(
                Change(request.performer_id, Collection.TRANSACTIONS, ChangeKind.INSERT)
            )
        return request

    def mark_played(
        self, request_id: RequestId, transactions: Sequence[Transaction]
    ) -> SongRequest:
        with self._lock:
            request = self._requests.get(request_id)
            if request is None:
                raise RequestNotFoundError(str(request_id))
            recorded = {
                (t.request_id, t.type)
                for t in self._transactions
                if t.request_id == request_id
            }
            new = [t for t in transactions if (t.request_id, t.type) not in recorded]
            changed = request.status is not RequestStatus.PLAYED
            request = request.played()
            self._requests[request_id] = request
            self._transactions.extend(new)
        if changed:
            self._publish_request(request, ChangeKind.UPDATE)
        if new:
            self.feed.publish(
                Change(request.performer_id, Collection.TRANSACTIONS, ChangeKind.INSERT)
            )
        return request

    def delete_played_requests(self, performer_id: PerformerId, song_id: SongId) -> int:
        return self._delete_where(
            performer_id,
            lambda r: r.song_id == song_id and r.status is RequestStatus.PLAYED,
        )

    def delete_requests(self, performer_id: PerformerId) -> int:
        return self._delete_where(performer_id, lambda r: True)

    # Earnings

    def list_transactions(self, performer_id: PerformerId) -> list[Transaction]:
        with self._lock:
            transactions = [
                t for t in self._transactions if t.performer_id == performer_id
            ]
        return sorted(transactions, key=lambda t: t.created_at, reverse=True)

    def _delete_where(self, performer_id: PerformerId, predicate) -> int:
        with self._lock:
            doomed = [
                r
                for r in self._requests.values()
                if r.performer_id == performer_id and predicate(r)
            ]
            for request in doomed:
                del self._requests[request.id]
        for request in doomed:
            self._publish_request(request, ChangeKind.DELETE)
        return len(doomed)

    def _publish_request(self, request: SongRequest, kind: ChangeKind) -> None:
        self.feed.publish(
            Change(request.performer_id, Collection.REQUESTS, kind, str(request.id))
        )


def _should_end(
    state: SessionState, expired_at: datetime | None, staged_before: datetime | None
) -> bool:
    if not state.is_live:
        return False
    if expired_at is not None and (
        state.session_end_time is None or state.session_end_time > expired_at
    ):
        return False
    if staged_before is not None and (
        state.offline_requested_at is None
        or state.offline_requested_at > staged_before
    ):
        return False
    return True
