"""Request ledger service - audience submissions and performer actions.

Client-side filtering is advisory only. Every submission is re-validated here
against the performer's current session state, and the cap is checked again
by the store at insert time.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from live.context import PerformerContext
from live.domain import (
    Money,
    PerformerId,
    RequestId,
    RequestStatus,
    SongId,
    SongRequest,
)
from live.domain.catalog import is_visible
from live.domain.errors import (
    CapacityError,
    ConflictError,
    ErrorCode,
    InvalidIdError,
    PerformerNotFoundError,
    RequestNotFoundError,
    SongNotFoundError,
    ValidationError,
)
from live.domain.ledger import split_transactions
from live.services.session_service import SessionService
from live.stores.interfaces import LiveStore

logger = logging.getLogger(__name__)

TIP_JAR_TITLE = "Tip Jar"

Amount = Decimal | int | float | str


class RequestLedgerService:
    """Service for the append-only request ledger."""

    def __init__(
        self,
        store: LiveStore,
        sessions: SessionService,
        now: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._now = now

    def submit(
        self,
        performer_id: PerformerId,
        song_id: SongId | str | None,
        requester_name: str,
        amount_paid: Amount,
        tip: Amount = 0,
        note: str | None = None,
        email: str | None = None,
    ) -> SongRequest:
        """Append a song request, or a tip when ``song_id`` is None.

        Raises:
            ValidationError: For bad input, an offline performer, or a song
                that is not requestable right now.
            NotFoundError: If the performer or song does not exist.
            CapacityError: If the pending queue is already at the cap.
            ConflictError: If a concurrent submission took the last slot.
        """
        name = (requester_name or "").strip()
        if not name:
            raise ValidationError("Please enter your name")
        paid, tip_amount = _money(amount_paid), _money(tip)
        if tip_amount.amount > paid.amount:
            raise ValidationError("Tip cannot exceed the amount paid")

        if self._store.get_performer(performer_id) is None:
            raise PerformerNotFoundError(str(performer_id))
        state = self._sessions.get_state(performer_id)
        note = (note or "").strip() or None
        email = (email or "").strip() or None

        if song_id is None:
            if not tip_amount or paid != tip_amount:
                raise ValidationError("Please enter a valid tip amount")
            request = SongRequest(
                id=RequestId.new(),
                performer_id=performer_id,
                song_id=None,
                song_title=TIP_JAR_TITLE,
                requester_name=name,
                requester_email=email,
                note=note,
                amount_paid=paid,
                tip=tip_amount,
                status=RequestStatus.PLAYED,
                is_tip_only=True,
                created_at=self._now(),
            )
            # The tip's earnings line is written together with the request
            request = self._store.append_request(
                request, state.request_cap, split_transactions(request, self._now())
            )
            logger.info(f"Tip of {paid} from {name!r} for performer {performer_id}")
            return request

        song_id = _song_id(song_id)
        song = self._store.get_song(song_id)
        if song is None:
            raise SongNotFoundError(str(song_id))
        if song.performer_id != performer_id or not is_visible(song, state.active_tags):
            raise ValidationError(
                "This song can't be requested right now",
                code=ErrorCode.SONG_NOT_REQUESTABLE,
            )
        if not state.is_live:
            raise ValidationError(
                "The artist is not taking requests right now",
                code=ErrorCode.PERFORMER_OFFLINE,
            )
        if self._store.has_played_request(performer_id, song_id):
            raise ValidationError(
                "This song has already been played",
                code=ErrorCode.SONG_ALREADY_PLAYED,
            )
        if (paid - tip_amount).amount < song.price.amount:
            raise ValidationError(f"The request price for this song is {song.price}")
        pending = self._store.count_pending_requests(performer_id)
        if state.request_cap.is_reached(pending):
            logger.info(
                f"Rejected request for {song.title!r}: performer {performer_id} "
                f"is at cap {state.request_cap.value}"
            )
            raise CapacityError(state.request_cap.value)

        request = SongRequest(
            id=RequestId.new(),
            performer_id=performer_id,
            song_id=song_id,
            song_title=song.title,
            original_artist=song.original_artist,
            requester_name=name,
            requester_email=email,
            note=note,
            amount_paid=paid,
            tip=tip_amount,
            status=RequestStatus.PENDING,
            is_tip_only=False,
            created_at=self._now(),
        )
        try:
            request = self._store.append_request(request, state.request_cap)
        except ConflictError:
            logger.warning(
                f"Lost the race for the last slot on performer {performer_id}"
            )
            raise
        logger.info(f"Request for {song.title!r} from {name!r} queued")
        return request

    def submit_tip(
        self,
        performer_id: PerformerId,
        requester_name: str,
        tip: Amount,
        note: str | None = None,
    ) -> SongRequest:
        """Append a tip-only entry; tips are never subject to the cap."""
        return self.submit(performer_id, None, requester_name, tip, tip, note=note)

    def mark_played(
        self, ctx: PerformerContext, request_ids: Iterable[RequestId | str]
    ) -> list[SongRequest]:
        """Mark requests played and record their earnings lines.

        Each request is updated atomically with its transactions. Calling
        again with the same ids changes nothing.

        Raises:
            RequestNotFoundError: If any id is unknown or belongs to another
                performer; nothing is written in that case.
        """
        ids = [_request_id(rid) for rid in request_ids]
        found = {
            r.id: r
            for r in self._store.get_requests(ids)
            if r.performer_id == ctx.performer_id
        }
        for rid in ids:
            if rid not in found:
                raise RequestNotFoundError(str(rid))

        played = []
        for rid in dict.fromkeys(ids):
            request = found[rid]
            lines = split_transactions(request, self._now())
            played.append(self._store.mark_played(rid, lines))
        logger.info(
            f"Performer {ctx.performer_id} marked {len(played)} request(s) played"
        )
        return played

    def reopen(self, ctx: PerformerContext, song_id: SongId | str) -> int:
        """Make a played song requestable again.

        Played requests for the song are removed from the ledger. Recorded
        transactions are kept.

        Returns:
            Number of requests removed.
        """
        song_id = _song_id(song_id)
        song = self._store.get_song(song_id)
        if song is None or song.performer_id != ctx.performer_id:
            raise SongNotFoundError(str(song_id))
        removed = self._store.delete_played_requests(ctx.performer_id, song_id)
        logger.info(f"Re-enabled {song.title!r} ({removed} played request(s) removed)")
        return removed


def _money(value: Amount) -> Money:
    try:
        return Money.of(value if value not in (None, "") else 0)
    except ValueError as e:
        raise ValidationError("Amounts must be numbers, 0 or more") from e


def _song_id(value: SongId | str) -> SongId:
    if isinstance(value, SongId):
        return value
    try:
        return SongId.from_string(str(value))
    except ValueError as e:
        raise InvalidIdError("song ID") from e


def _request_id(value: RequestId | str) -> RequestId:
    if isinstance(value, RequestId):
        return value
    try:
        return RequestId.from_string(str(value))
    except ValueError as e:
        raise InvalidIdError("request ID") from e
