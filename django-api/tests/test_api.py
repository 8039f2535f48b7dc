"""HTTP tests for the live request endpoints.

Run with: pytest tests/test_api.py -v
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from live import models
from live.domain import PerformerId
from live.handlers.views import get_services


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
def performer_client(api_client, performer_row):
    api_client.force_authenticate(user=performer_row.user)
    return api_client


@pytest.fixture
def live(performer_client, song_row):
    response = performer_client.post(
        "/api/live/go-live", {"request_cap": 2}, format="json"
    )
    assert response.status_code == 200
    return response.json()


def submit(client, song_row, name="Ann", amount="5.00", tip="0"):
    return client.post(
        "/api/artists/ada/requests",
        {
            "song_id": str(song_row.id),
            "requester_name": name,
            "amount_paid": amount,
            "tip": tip,
        },
        format="json",
    )


@pytest.mark.django_db
class TestArtistPage:
    """Tests for GET /api/artists/{slug}."""

    def test_offline_page(self, api_client, song_row):
        response = api_client.get("/api/artists/ada")

        assert response.status_code == 200
        body = response.json()
        assert body["performer"]["name"] == "Ada"
        assert body["is_live"] is False
        assert body["accepting_requests"] is False
        assert body["time_left"] == ""
        assert body["songs"][0]["song"]["title"] == "Wonderwall"
        assert body["songs"][0]["song"]["price"] == "5.00"

    def test_unknown_slug_is_404(self, api_client):
        response = api_client.get("/api/artists/nobody")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PERFORMER_NOT_FOUND"


@pytest.mark.django_db
class TestSongRequests:
    """Tests for POST /api/artists/{slug}/requests."""

    def test_request_created(self, api_client, live, song_row):
        response = submit(api_client, song_row)

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert response.json()["amount_paid"] == "5.00"

    def test_offline_request_rejected(self, api_client, song_row):
        response = submit(api_client, song_row)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PERFORMER_OFFLINE"

    def test_cap_reached_is_409(self, api_client, live, song_row):
        submit(api_client, song_row, "Ann")
        submit(api_client, song_row, "Bob")
        response = submit(api_client, song_row, "Cat")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CAPACITY_REACHED"

    def test_unknown_song_is_404(self, api_client, live, song_row):
        response = api_client.post(
            "/api/artists/ada/requests",
            {"song_id": str(uuid4()), "requester_name": "Ann", "amount_paid": "5"},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SONG_NOT_FOUND"

    def test_malformed_body_is_400(self, api_client, live):
        response = api_client.post(
            "/api/artists/ada/requests", {"song_id": "x"}, format="json"
        )

        assert response.status_code == 400


@pytest.mark.django_db
class TestTips:
    """Tests for POST /api/artists/{slug}/tips."""

    def test_tip_created_while_offline(self, api_client, performer_row):
        response = api_client.post(
            "/api/artists/ada/tips",
            {"requester_name": "Ann", "tip": "3.00"},
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["is_tip_only"] is True
        assert response.json()["song_title"] == "Tip Jar"


@pytest.mark.django_db
class TestPerformerEndpoints:
    """Tests for the signed-in performer's endpoints."""

    def test_requires_authentication(self, api_client):
        response = api_client.get("/api/live/queue")

        assert response.status_code in (401, 403)

    def test_go_live_without_songs_is_rejected(self, performer_client):
        response = performer_client.post("/api/live/go-live", {}, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "NOT_READY_TO_GO_LIVE"

    def test_go_live_returns_state(self, live):
        assert live["is_live"] is True
        assert live["request_cap"] == 2
        assert live["session_end_time"] is not None

    def test_queue_groups_requests(self, performer_client, api_client, live, song_row):
        submit(api_client, song_row, "Ann")
        submit(api_client, song_row, "Bob")

        response = performer_client.get("/api/live/queue")

        assert response.status_code == 200
        body = response.json()
        [group] = body["queue"]["grouped_pending"]
        assert group["requester_count"] == 2
        assert group["requesters"] == "Ann, Bob"
        assert body["queue"]["remaining_capacity"] == 0
        assert body["all_tags"] == ["rock"]
        assert body["time_left"] != ""

    def test_mark_played_and_earnings(self, performer_client, api_client, live, song_row):
        request_id = submit(api_client, song_row, amount="12.00", tip="2.00").json()["id"]

        response = performer_client.post(
            "/api/live/requests/played", {"request_ids": [request_id]}, format="json"
        )
        assert response.status_code == 200
        assert response.json()[0]["status"] == "played"

        earnings = performer_client.get("/api/live/earnings").json()
        assert earnings["gross"] == "12.00"
        assert earnings["commission"] == "2.40"
        assert earnings["net"] == "9.60"
        assert sorted(t["type"] for t in earnings["transactions"]) == ["Request", "Tip"]

    def test_mark_played_unknown_request_is_404(self, performer_client, live):
        response = performer_client.post(
            "/api/live/requests/played", {"request_ids": [str(uuid4())]}, format="json"
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "REQUEST_NOT_FOUND"

    def test_reopen_song(self, performer_client, api_client, live, song_row):
        request_id = submit(api_client, song_row).json()["id"]
        performer_client.post(
            "/api/live/requests/played", {"request_ids": [request_id]}, format="json"
        )
        assert submit(api_client, song_row).json()["error"]["code"] == (
            "SONG_ALREADY_PLAYED"
        )

        response = performer_client.post(f"/api/live/songs/{song_row.id}/reopen")

        assert response.json() == {"removed": 1}
        assert submit(api_client, song_row).status_code == 201

    def test_settings_update(self, performer_client, live):
        response = performer_client.patch(
            "/api/live/settings",
            {"request_cap": 0, "active_tags": ["rock"]},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["request_cap"] == 0
        assert response.json()["active_tags"] == ["rock"]

    def test_timer_update_while_offline_is_rejected(self, performer_client, song_row):
        response = performer_client.patch(
            "/api/live/settings", {"duration_minutes": 30}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PERFORMER_OFFLINE"

    def test_go_offline_is_staged(self, performer_client, api_client, live):
        """The session stays live until the grace window is committed."""
        response = performer_client.post("/api/live/go-offline")

        assert response.status_code == 200
        body = response.json()
        assert body["is_live"] is True
        assert body["offline_pending"] is True
        assert body["offline_requested_at"] is not None
        assert api_client.get("/api/artists/ada").json()["is_live"] is True
        assert models.SessionState.objects.get().offline_requested_at is not None

    def test_undo_offline(self, performer_client, live):
        performer_client.post("/api/live/go-offline")

        response = performer_client.post("/api/live/undo-offline")

        assert response.status_code == 200
        assert response.json()["is_live"] is True
        assert response.json()["offline_pending"] is False
        assert models.SessionState.objects.get().offline_requested_at is None

    def test_go_live_cancels_staged_offline(self, performer_client, live):
        performer_client.post("/api/live/go-offline")

        response = performer_client.post(
            "/api/live/go-live", {"duration_minutes": 15}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["offline_pending"] is False
        assert response.json()["session_end_time"] == live["session_end_time"]

    def test_staged_offline_committed_after_grace(
        self, performer_client, api_client, live, performer_row, settings
    ):
        settings.LIVE_QUEUE = {**settings.LIVE_QUEUE, "OFFLINE_GRACE_SECONDS": 0}
        performer_client.post("/api/live/go-offline")
        sessions = get_services().sessions

        assert sessions.commit_staged_offline(PerformerId(performer_row.id))

        row = models.SessionState.objects.get()
        assert not row.is_live
        assert row.offline_requested_at is None
        assert api_client.get("/api/artists/ada").json()["is_live"] is False

    def test_undone_offline_is_not_committed(
        self, performer_client, live, performer_row, settings
    ):
        settings.LIVE_QUEUE = {**settings.LIVE_QUEUE, "OFFLINE_GRACE_SECONDS": 0}
        performer_client.post("/api/live/go-offline")
        performer_client.post("/api/live/undo-offline")

        assert not get_services().sessions.commit_staged_offline(
            PerformerId(performer_row.id)
        )
        assert models.SessionState.objects.get().is_live

    def test_user_without_performer_profile(self, api_client, django_user_model):
        user = django_user_model.objects.create_user(username="fan", password="pw")
        api_client.force_authenticate(user=user)

        response = api_client.get("/api/live/queue")

        assert response.status_code == 404


@pytest.mark.django_db
class TestUrlSlug:
    """Tests for POST /api/profile/slug."""

    def test_claim_slug(self, api_client, django_user_model):
        user = django_user_model.objects.create_user(username="bo", password="pw")
        models.Performer.objects.create(user=user, name="Bo")
        api_client.force_authenticate(user=user)

        response = api_client.post(
            "/api/profile/slug", {"url_slug": "Bo-Band"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["url_slug"] == "bo-band"

    def test_slug_already_set(self, performer_client):
        response = performer_client.post(
            "/api/profile/slug", {"url_slug": "other"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SLUG_ALREADY_SET"
