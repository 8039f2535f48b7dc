"""Integration tests for DjangoLiveStore.

Run with: pytest tests/test_django_store.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from decimal import Decimal

from django.db import OperationalError, connection
from django.utils import timezone

from live import models
from live.conf import LiveSettings
from live.context import PerformerContext
from live.domain import (
    Money,
    PerformerId,
    RequestCap,
    RequestId,
    RequestStatus,
    SongId,
    SongRequest,
    UrlSlug,
)
from live.domain.errors import (
    CapacityError,
    ConflictError,
    DomainError,
    ErrorCode,
    RequestNotFoundError,
)
from live.realtime import ChangeKind, Collection, default_feed
from live.services import LiveServices
from live.stores.django_store import DjangoLiveStore


@pytest.fixture
def performer_row(django_user_model):
    user = django_user_model.objects.create_user(username="ada", password="pw")
    return models.Performer.objects.create(user=user, name="Ada", url_slug="ada")


@pytest.fixture
def song_row(performer_row):
    return models.Song.objects.create(
        performer=performer_row,
        title="Wonderwall",
        original_artist="Oasis",
        price=Decimal("5.00"),
        tags=["rock"],
    )


@pytest.fixture
def store():
    return DjangoLiveStore()


@pytest.fixture
def services(store):
    return LiveServices.build(store, LiveSettings())


@pytest.fixture
def ctx(performer_row):
    return PerformerContext(PerformerId(performer_row.id))


def pending_request(performer_row, song_row, name="Bob") -> SongRequest:
    return SongRequest(
        id=RequestId.new(),
        performer_id=PerformerId(performer_row.id),
        song_id=SongId(song_row.id),
        song_title=song_row.title,
        requester_name=name,
        amount_paid=Money.of("5.00"),
        tip=Money.zero(),
        status=RequestStatus.PENDING,
        is_tip_only=False,
        created_at=timezone.now(),
    )


@pytest.mark.django_db
class TestDjangoLiveStore:
    """Tests for DjangoLiveStore against the test database."""

    def test_domain_conversion(self, store, performer_row, song_row):
        performer = store.get_performer(PerformerId(performer_row.id))
        assert performer.name == "Ada"
        assert performer.has_public_page
        [song] = store.list_songs(performer.id)
        assert song.price == Money.of("5.00")
        assert song.tags == ("rock",)

    def test_append_rechecks_cap(self, store, performer_row, song_row):
        """The insert itself refuses a request once the cap is reached."""
        store.append_request(pending_request(performer_row, song_row, "Ann"), RequestCap(1))

        with pytest.raises(ConflictError):
            store.append_request(pending_request(performer_row, song_row), RequestCap(1))
        assert models.SongRequest.objects.count() == 1

    def test_mark_played_is_idempotent(self, services, ctx, song_row):
        services.sessions.go_live(ctx, cap=5)
        request = services.ledger.submit(
            ctx.performer_id, str(song_row.id), "Ann", "12.00", "2.00"
        )

        services.ledger.mark_played(ctx, [request.id])
        services.ledger.mark_played(ctx, [request.id])

        amounts = dict(models.Transaction.objects.values_list("type", "amount"))
        assert amounts == {"Request": Decimal("10.00"), "Tip": Decimal("2.00")}
        row = models.SongRequest.objects.get(pk=request.id.value)
        assert row.status == models.SongRequest.Status.PLAYED

    def test_mark_played_unknown_request(self, store):
        with pytest.raises(RequestNotFoundError):
            store.mark_played(RequestId.new(), [])

    def test_tip_is_written_with_its_transaction(self, services, ctx):
        services.ledger.submit_tip(ctx.performer_id, "Ann", "4.00")

        assert models.SongRequest.objects.get().is_tip_only
        assert models.Transaction.objects.get().amount == Decimal("4.00")

    def test_deleting_requests_keeps_transactions(self, services, store, ctx, song_row):
        services.sessions.go_live(ctx)
        request = services.ledger.submit(ctx.performer_id, str(song_row.id), "Ann", "5")
        services.ledger.mark_played(ctx, [request.id])

        assert store.delete_requests(ctx.performer_id) == 1
        assert models.Transaction.objects.count() == 1
        assert store.list_transactions(ctx.performer_id)[0].request_id == request.id

    def test_set_url_slug_conflict(self, store, performer_row, django_user_model):
        user = django_user_model.objects.create_user(username="bo", password="pw")
        other = models.Performer.objects.create(user=user, name="Bo")

        with pytest.raises(ConflictError) as excinfo:
            store.set_url_slug(PerformerId(other.id), UrlSlug("ada"))
        assert excinfo.value.code is ErrorCode.SLUG_TAKEN

    def test_session_state_created_on_first_save(self, services, ctx, song_row):
        assert not models.SessionState.objects.exists()
        services.sessions.go_live(ctx)

        assert models.SessionState.objects.get().is_live
        assert services.sessions.get_state(ctx.performer_id).is_live

    def test_list_live_performers(self, services, store, ctx, song_row):
        services.sessions.go_live(ctx)
        assert store.list_live_performers() == [ctx.performer_id]

        services.sessions.go_offline(ctx)
        assert store.list_live_performers() == []


@pytest.mark.django_db
class TestChangeSignals:
    """Tests for change notification from model signals."""

    def test_changes_published_after_commit(
        self, services, ctx, song_row, django_capture_on_commit_callbacks
    ):
        received = []
        subscription = default_feed.subscribe(ctx.performer_id, received.append)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                services.sessions.go_live(ctx)
                services.ledger.submit(ctx.performer_id, str(song_row.id), "Ann", "5")
        finally:
            subscription.close()

        kinds = [(c.collection, c.kind) for c in received]
        assert (Collection.SESSION_STATE, ChangeKind.INSERT) in kinds
        assert (Collection.REQUESTS, ChangeKind.INSERT) in kinds

    def test_nothing_published_before_commit(
        self, services, ctx, song_row, django_capture_on_commit_callbacks
    ):
        received = []
        subscription = default_feed.subscribe(ctx.performer_id, received.append)
        try:
            with django_capture_on_commit_callbacks(execute=False) as callbacks:
                services.sessions.go_live(ctx)
        finally:
            subscription.close()

        assert received == []
        assert callbacks


@pytest.mark.django_db
class TestEndSession:
    """Tests for the conditional session close."""

    def test_end_refused_after_rearm(self, services, store, ctx, song_row):
        state = services.sessions.go_live(ctx, duration_minutes=60)
        stale = state.session_end_time - timedelta(minutes=1)

        assert store.end_session(ctx.performer_id, True, expired_at=stale) is None
        assert models.SessionState.objects.get().is_live

    def test_end_when_due(self, services, store, ctx, song_row):
        state = services.sessions.go_live(ctx, tags=["rock"], duration_minutes=60)

        ended = store.end_session(
            ctx.performer_id, True, expired_at=state.session_end_time
        )

        assert not ended.is_live
        assert ended.active_tags == frozenset()
        row = models.SessionState.objects.get()
        assert not row.is_live
        assert row.session_end_time is None

    def test_staged_end_requires_pending_offline(self, services, store, ctx, song_row):
        services.sessions.go_live(ctx)

        now = timezone.now()
        assert store.end_session(ctx.performer_id, True, staged_before=now) is None

        services.sessions.request_offline(ctx)
        assert store.end_session(ctx.performer_id, False, staged_before=timezone.now())
        assert models.SessionState.objects.get().offline_requested_at is None

    def test_end_publishes_after_commit(
        self, services, store, ctx, song_row, django_capture_on_commit_callbacks
    ):
        services.sessions.go_live(ctx)
        received = []
        subscription = default_feed.subscribe(ctx.performer_id, received.append)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                store.end_session(ctx.performer_id, True)
        finally:
            subscription.close()

        assert [(c.collection, c.kind) for c in received] == [
            (Collection.SESSION_STATE, ChangeKind.UPDATE)
        ]


@pytest.mark.django_db(transaction=True)
class TestConcurrentAppend:
    """Tests for the cap when submissions race on separate connections."""

    def test_cap_holds_when_threads_race(self, services, ctx, song_row):
        services.sessions.go_live(ctx, cap=3)
        start = threading.Barrier(10)

        def submit(i):
            start.wait()
            try:
                return services.ledger.submit(
                    ctx.performer_id, str(song_row.id), f"Fan {i}", "5"
                )
            except (CapacityError, ConflictError) as e:
                return e
            finally:
                connection.close()

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(submit, range(10)))

        rejected = [r for r in results if isinstance(r, DomainError)]
        assert len(results) - len(rejected) == 3
        assert len(rejected) == 7
        assert models.SongRequest.objects.count() == 3

    def test_lost_database_lock_is_a_conflict(
        self, store, performer_row, song_row, monkeypatch
    ):
        def locked(*args, **kwargs):
            raise OperationalError("database is locked")

        monkeypatch.setattr(store, "_append", locked)

        with pytest.raises(ConflictError):
            store.append_request(pending_request(performer_row, song_row), RequestCap(3))
