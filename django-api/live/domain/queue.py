"""Performer-facing queue projection.

The projection has no storage of its own: it is recomputed from the full
request list and the session state every time either changes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from live.domain.models import RequestStatus, SessionState, SongRequest
from live.domain.value_objects import Money, RequestId, SongId


@dataclass(frozen=True)
class RequestGroup:
    """Requests for the same song, shown as one queue entry."""

    song_id: SongId | None
    song_title: str
    original_artist: str
    request_ids: tuple[RequestId, ...]
    requester_names: tuple[str, ...]
    notes: tuple[str, ...]
    total_paid: Money
    total_tip: Money
    first_requested_at: datetime
    last_requested_at: datetime

    @property
    def requester_count(self) -> int:
        return len(self.request_ids)

    @property
    def requesters(self) -> str:
        return ", ".join(self.requester_names)

    @property
    def request_amount(self) -> Money:
        """Amount paid for the song itself, tips excluded."""
        return self.total_paid - self.total_tip


@dataclass(frozen=True)
class QueueView:
    """Everything the performer dashboard renders.

    ``remaining_capacity`` counts pending requests, not song groups, so it
    agrees with the cap check on submission: three requests for one song use
    three slots. None when the cap is unlimited.
    """

    grouped_pending: tuple[RequestGroup, ...]
    played_grouped: tuple[RequestGroup, ...]
    tips: tuple[SongRequest, ...]
    pending_count: int
    remaining_capacity: int | None

    @property
    def played_song_ids(self) -> frozenset[SongId]:
        return frozenset(g.song_id for g in self.played_grouped if g.song_id)


def group_by_song(requests: Iterable[SongRequest]) -> list[RequestGroup]:
    """Group requests by song id, in order of each group's first appearance."""
    buckets: dict[SongId | None, list[SongRequest]] = {}
    for request in requests:
        buckets.setdefault(request.song_id, []).append(request)

    groups = []
    for song_id, members in buckets.items():
        members.sort(key=lambda r: r.created_at)
        first = members[0]
        groups.append(
            RequestGroup(
                song_id=song_id,
                song_title=first.song_title,
                original_artist=first.original_artist,
                request_ids=tuple(r.id for r in members),
                requester_names=tuple(r.requester_name for r in members),
                notes=tuple(r.note for r in members if r.note),
                total_paid=sum((r.amount_paid for r in members), Money.zero()),
                total_tip=sum((r.tip for r in members), Money.zero()),
                first_requested_at=first.created_at,
                last_requested_at=members[-1].created_at,
            )
        )
    return groups


def project_queue(
    requests: Iterable[SongRequest], session: SessionState
) -> QueueView:
    """Derive the dashboard view from the ledger and session state."""
    requests = list(requests)
    pending = [r for r in requests if r.is_pending_song_request]
    played = [
        r for r in requests if not r.is_tip_only and r.status is RequestStatus.PLAYED
    ]
    tips = sorted(
        (r for r in requests if r.is_tip_only),
        key=lambda r: r.created_at,
        reverse=True,
    )

    # sorted() is stable, so groups opened at the same instant keep arrival order
    grouped_pending = sorted(group_by_song(pending), key=lambda g: g.first_requested_at)
    played_grouped = sorted(
        group_by_song(played), key=lambda g: g.last_requested_at, reverse=True
    )

    return QueueView(
        grouped_pending=tuple(grouped_pending),
        played_grouped=tuple(played_grouped),
        tips=tuple(tips),
        pending_count=len(pending),
        remaining_capacity=session.request_cap.remaining(len(pending)),
    )
