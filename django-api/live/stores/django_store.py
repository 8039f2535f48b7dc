"""Django ORM implementation of the LiveStore.

Change notifications are published by the signal handlers in live/signals.py
once the surrounding transaction commits.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from django.core.cache import cache
from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from live import models
from live.domain import (
    Gig,
    Money,
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
    TransactionType,
    UrlSlug,
)
from live.domain.errors import ConflictError, ErrorCode, RequestNotFoundError
from live.realtime import Change, ChangeFeed, ChangeKind, Collection, default_feed
from live.stores.interfaces import LiveStore

CATALOG_CACHE_TIMEOUT = 300


def catalog_cache_key(performer_id) -> str:
    return f"live:{performer_id}:catalog"


def _performer(row: models.Performer) -> Performer:
    socials = {
        "facebook": row.social_facebook,
        "x": row.social_x,
        "instagram": row.social_instagram,
        "tiktok": row.social_tiktok,
    }
    return Performer(
        id=PerformerId(row.id),
        name=row.name,
        url_slug=row.url_slug or None,
        bio=row.bio,
        picture_url=row.picture_url,
        socials={k: v for k, v in socials.items() if v},
    )


def _song(row: models.Song) -> Song:
    return Song(
        id=SongId(row.id),
        performer_id=PerformerId(row.performer_id),
        title=row.title,
        original_artist=row.original_artist,
        price=Money(row.price),
        position=row.position,
        tags=tuple(row.tags or ()),
    )


def _gig(row: models.Gig) -> Gig:
    return Gig(
        id=row.id,
        performer_id=PerformerId(row.performer_id),
        date=row.date,
        time=row.time,
        venue=row.venue,
        address=row.address,
        latitude=row.latitude,
        longitude=row.longitude,
    )


def _session(row: models.SessionState) -> SessionState:
    return SessionState(
        performer_id=PerformerId(row.performer_id),
        is_live=row.is_live,
        session_end_time=row.session_end_time,
        request_cap=RequestCap(row.request_cap),
        active_tags=frozenset(row.active_tags or ()),
        offline_requested_at=row.offline_requested_at,
    )


def _request(row: models.SongRequest) -> SongRequest:
    return SongRequest(
        id=RequestId(row.id),
        performer_id=PerformerId(row.performer_id),
        song_id=SongId(row.song_id) if row.song_id else None,
        song_title=row.song_title,
        original_artist=row.original_artist,
        requester_name=row.requester_name,
        requester_email=row.requester_email,
        note=row.note,
        amount_paid=Money(Decimal(row.amount_paid)),
        tip=Money(Decimal(row.tip)),
        status=RequestStatus(row.status),
        is_tip_only=row.is_tip_only,
        created_at=row.created_at,
    )


def _transaction(row: models.Transaction) -> Transaction:
    return Transaction(
        id=row.id,
        performer_id=PerformerId(row.performer_id),
        request_id=RequestId(row.request_id),
        type=TransactionType(row.type),
        amount=Money(Decimal(row.amount)),
        details=row.details,
        created_at=row.created_at,
    )


class DjangoLiveStore(LiveStore):
    """PostgreSQL-backed store using Django ORM."""

    def __init__(self, feed: ChangeFeed | None = None) -> None:
        super().__init__(feed or default_feed)

    # Performers

    def get_performer(self, performer_id: PerformerId) -> Performer | None:
        row = models.Performer.objects.filter(pk=performer_id.value).first()
        return _performer(row) if row else None

    def get_performer_by_slug(self, slug: str) -> Performer | None:
        row = models.Performer.objects.filter(url_slug=slug).first()
        return _performer(row) if row else None

    def set_url_slug(self, performer_id: PerformerId, slug: UrlSlug) -> Performer:
        taken = (
            models.Performer.objects.filter(url_slug=slug.value)
            .exclude(pk=performer_id.value)
            .exists()
        )
        if taken:
            raise ConflictError("This URL is already taken", code=ErrorCode.SLUG_TAKEN)
        row = models.Performer.objects.get(pk=performer_id.value)
        row.url_slug = slug.value
        try:
            with transaction.atomic():
                row.save(update_fields=["url_slug"])
        except IntegrityError as e:
            raise ConflictError(
                "This URL is already taken", code=ErrorCode.SLUG_TAKEN
            ) from e
        return _performer(row)

    # Catalog and calendar

    def list_songs(self, performer_id: PerformerId) -> list[Song]:
        key = catalog_cache_key(performer_id)
        songs = cache.get(key)
        if songs is None:
            songs = [
                _song(row)
                for row in models.Song.objects.filter(
                    performer_id=performer_id.value
                ).order_by("position")
            ]
            cache.set(key, songs, CATALOG_CACHE_TIMEOUT)
        return songs

    def get_song(self, song_id: SongId) -> Song | None:
        row = models.Song.objects.filter(pk=song_id.value).first()
        return _song(row) if row else None

    def list_gigs(self, performer_id: PerformerId) -> list[Gig]:
        rows = models.Gig.objects.filter(performer_id=performer_id.value).order_by(
            "-date"
        )
        return [_gig(row) for row in rows]

    # Session state

    def get_session_state(self, performer_id: PerformerId) -> SessionState | None:
        row = models.SessionState.objects.filter(
            performer_id=performer_id.value
        ).first()
        return _session(row) if row else None

    def save_session_state(self, state: SessionState) -> SessionState:
        row, _ = models.SessionState.objects.update_or_create(
            performer_id=state.performer_id.value,
            defaults={
                "is_live": state.is_live,
                "session_end_time": state.session_end_time,
                "request_cap": state.request_cap.value,
                "active_tags": sorted(state.active_tags),
                "offline_requested_at": state.offline_requested_at,
            },
        )
        return _session(row)

    def end_session(
        self,
        performer_id: PerformerId,
        reset_active_tags: bool,
        expired_at: datetime | None = None,
        staged_before: datetime | None = None,
    ) -> SessionState | None:
        rows = models.SessionState.objects.filter(
            performer_id=performer_id.value, is_live=True
        )
        if expired_at is not None:
            rows = rows.filter(session_end_time__lte=expired_at)
        if staged_before is not None:
            rows = rows.filter(offline_requested_at__lte=staged_before)
        changes = {
            "is_live": False,
            "session_end_time": None,
            "offline_requested_at": None,
            # update() bypasses auto_now
            "updated_at": timezone.now(),
        }
        if reset_active_tags:
            changes["active_tags"] = []
        with transaction.atomic():
            if not rows.update(**changes):
                return None
            row = models.SessionState.objects.get(performer_id=performer_id.value)
            change = Change(
                performer_id, Collection.SESSION_STATE, ChangeKind.UPDATE, str(row.pk)
            )
            # update() sends no post_save, so publish here once the write commits
            transaction.on_commit(lambda: self.feed.publish(change))
        return _session(row)

    def list_live_performers(self) -> list[PerformerId]:
        ids = models.SessionState.objects.filter(is_live=True).values_list(
            "performer_id", flat=True
        )
        return [PerformerId(pid) for pid in ids]

    # Request ledger

    def list_requests(self, performer_id: PerformerId) -> list[SongRequest]:
        rows = models.SongRequest.objects.filter(
            performer_id=performer_id.value
        ).order_by("created_at")
        return [_request(row) for row in rows]

    def get_requests(self, request_ids: Iterable[RequestId]) -> list[SongRequest]:
        ids = [rid.value for rid in request_ids]
        return [_request(row) for row in models.SongRequest.objects.filter(pk__in=ids)]

    def count_pending_requests(self, performer_id: PerformerId) -> int:
        return models.SongRequest.objects.filter(
            performer_id=performer_id.value,
            status=models.SongRequest.Status.PENDING,
            is_tip_only=False,
        ).count()

    def has_played_request(self, performer_id: PerformerId, song_id: SongId) -> bool:
        return models.SongRequest.objects.filter(
            performer_id=performer_id.value,
            song_id=song_id.value,
            status=models.SongRequest.Status.PLAYED,
        ).exists()

    def append_request(
        self,
        request: SongRequest,
        cap: RequestCap,
        transactions: Sequence[Transaction] = (),
    ) -> SongRequest:
        try:
            row = self._append(request, cap, transactions)
        except OperationalError as e:
            # SQLite has no row locks; a writer that times out on the
            # database lock lost the race for the slot
            if "locked" not in str(e):
                raise
            raise ConflictError("Another request took the last slot") from e
        return _request(row)

    def _append(
        self,
        request: SongRequest,
        cap: RequestCap,
        transactions: Sequence[Transaction],
    ) -> models.SongRequest:
        with transaction.atomic():
            # Row lock on the performer serializes concurrent appends
            models.Performer.objects.select_for_update().get(
                pk=request.performer_id.value
            )
            if not request.is_tip_only and cap.is_reached(
                self.count_pending_requests(request.performer_id)
            ):
                raise ConflictError("Another request took the last slot")
            row = models.SongRequest.objects.create(
                id=request.id.value,
                performer_id=request.performer_id.value,
                song_id=request.song_id.value if request.song_id else None,
                song_title=request.song_title,
                original_artist=request.original_artist,
                requester_name=request.requester_name,
                requester_email=request.requester_email,
                note=request.note,
                amount_paid=request.amount_paid.amount,
                tip=request.tip.amount,
                status=request.status.value,
                is_tip_only=request.is_tip_only,
                created_at=request.created_at,
            )
            for line in transactions:
                self._record(line)
        return row

    def mark_played(
        self, request_id: RequestId, transactions: Sequence[Transaction]
    ) -> SongRequest:
        with transaction.atomic():
            row = (
                models.SongRequest.objects.select_for_update()
                .filter(pk=request_id.value)
                .first()
            )
            if row is None:
                raise RequestNotFoundError(str(request_id))
            if row.status != models.SongRequest.Status.PLAYED:
                row.status = models.SongRequest.Status.PLAYED
                row.save(update_fields=["status"])
            for line in transactions:
                self._record(line)
        return _request(row)

    def delete_played_requests(self, performer_id: PerformerId, song_id: SongId) -> int:
        deleted, _ = models.SongRequest.objects.filter(
            performer_id=performer_id.value,
            song_id=song_id.value,
            status=models.SongRequest.Status.PLAYED,
        ).delete()
        return deleted

    def delete_requests(self, performer_id: PerformerId) -> int:
        deleted, _ = models.SongRequest.objects.filter(
            performer_id=performer_id.value
        ).delete()
        return deleted

    # Earnings

    def list_transactions(self, performer_id: PerformerId) -> list[Transaction]:
        rows = models.Transaction.objects.filter(
            performer_id=performer_id.value
        ).order_by("-created_at")
        return [_transaction(row) for row in rows]

    def _record(self, line: Transaction) -> None:
        # get_or_create keeps retries from duplicating a (request, type) line
        models.Transaction.objects.get_or_create(
            request_id=line.request_id.value,
            type=line.type.value,
            defaults={
                "id": line.id,
                "performer_id": line.performer_id.value,
                "amount": line.amount.amount,
                "details": line.details,
                "created_at": line.created_at,
            },
        )
