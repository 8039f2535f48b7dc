"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Let domain errors propagate to live.handlers.errors for mapping
- Never contain business logic
"""

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from live.conf import LiveSettings
from live.context import PerformerContext
from live.domain.errors import PerformerNotFoundError
from live.handlers import serializers
from live.services import LiveServices
from live.stores.django_store import DjangoLiveStore


def get_services() -> LiveServices:
    return LiveServices.build(DjangoLiveStore(), LiveSettings.from_django())


def performer_context(request: Request) -> PerformerContext:
    if not hasattr(request.user, "performer"):
        raise PerformerNotFoundError(str(request.user.pk))
    return PerformerContext.for_user(request.user)


class PerformerAPIView(APIView):
    """Base for endpoints acting on the signed-in performer's data."""

    permission_classes = [IsAuthenticated]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.services = get_services()
        self.ctx = performer_context(request)


class AudienceAPIView(APIView):
    """Base for public endpoints addressed by a performer's slug."""

    permission_classes = [AllowAny]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.services = get_services()

    def performer_id(self, slug: str):
        return self.services.queue.performer_for_slug(slug).id


class ArtistPageView(AudienceAPIView):
    """Handler for GET /api/artists/{slug}"""

    def get(self, request: Request, slug: str) -> Response:
        page = self.services.queue.public_page(slug)
        return Response(serializers.PublicPageSerializer(page).data)


class SongRequestCreateView(AudienceAPIView):
    """Handler for POST /api/artists/{slug}/requests"""

    def post(self, request: Request, slug: str) -> Response:
        data = serializers.SongRequestInputSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        payload = data.validated_data

        song_request = self.services.ledger.submit(
            self.performer_id(slug),
            str(payload["song_id"]),
            payload["requester_name"],
            payload["amount_paid"],
            payload["tip"],
            note=payload.get("note"),
            email=payload.get("email"),
        )
        return Response(
            serializers.SongRequestSerializer(song_request).data,
            status=status.HTTP_201_CREATED,
        )


class TipCreateView(AudienceAPIView):
    """Handler for POST /api/artists/{slug}/tips"""

    def post(self, request: Request, slug: str) -> Response:
        data = serializers.TipInputSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        payload = data.validated_data

        tip = self.services.ledger.submit_tip(
            self.performer_id(slug),
            payload["requester_name"],
            payload["tip"],
            note=payload.get("note"),
        )
        return Response(
            serializers.SongRequestSerializer(tip).data,
            status=status.HTTP_201_CREATED,
        )


class QueueView(PerformerAPIView):
    """Handler for GET /api/live/queue"""

    def get(self, request: Request) -> Response:
        dashboard = self.services.queue.dashboard(self.ctx)
        return Response(serializers.DashboardSerializer(dashboard).data)


class GoLiveView(PerformerAPIView):
    """Handler for POST /api/live/go-live"""

    def post(self, request: Request) -> Response:
        data = serializers.GoLiveInputSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        payload = data.validated_data

        state = self.services.sessions.go_live(
            self.ctx,
            cap=payload.get("request_cap"),
            tags=payload.get("active_tags"),
            duration_minutes=payload.get("duration_minutes"),
        )
        return Response(serializers.SessionStateSerializer(state).data)


class GoOfflineView(PerformerAPIView):
    """Handler for POST /api/live/go-offline

    Stages the transition; the session stays live until the grace window
    passes and the session clock commits it. POST /api/live/undo-offline or
    go-live cancels it in the meantime.
    """

    def post(self, request: Request) -> Response:
        state = self.services.sessions.request_offline(self.ctx)
        return Response(serializers.SessionStateSerializer(state).data)


class UndoOfflineView(PerformerAPIView):
    """Handler for POST /api/live/undo-offline"""

    def post(self, request: Request) -> Response:
        state = self.services.sessions.undo_offline(self.ctx)
        return Response(serializers.SessionStateSerializer(state).data)


class LiveSettingsView(PerformerAPIView):
    """Handler for PATCH /api/live/settings"""

    def patch(self, request: Request) -> Response:
        data = serializers.LiveSettingsInputSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        payload = data.validated_data
        sessions = self.services.sessions

        state = sessions.get_state(self.ctx.performer_id)
        if "request_cap" in payload:
            state = sessions.set_request_cap(self.ctx, payload["request_cap"])
        if payload["reset_tags"]:
            state = sessions.reset_active_tags(self.ctx)
        elif "active_tags" in payload:
            state = sessions.set_active_tags(self.ctx, payload["active_tags"])
        if "duration_minutes" in payload:
            state = sessions.update_session_timer(self.ctx, payload["duration_minutes"])
        return Response(serializers.SessionStateSerializer(state).data)


class MarkPlayedView(PerformerAPIView):
    """Handler for POST /api/live/requests/played"""

    def post(self, request: Request) -> Response:
        data = serializers.MarkPlayedInputSerializer(data=request.data)
        data.is_valid(raise_exception=True)

        played = self.services.ledger.mark_played(
            self.ctx, [str(rid) for rid in data.validated_data["request_ids"]]
        )
        return Response(serializers.SongRequestSerializer(played, many=True).data)


class ReopenSongView(PerformerAPIView):
    """Handler for POST /api/live/songs/{song_id}/reopen"""

    def post(self, request: Request, song_id: str) -> Response:
        removed = self.services.ledger.reopen(self.ctx, song_id)
        return Response({"removed": removed})


class EarningsView(PerformerAPIView):
    """Handler for GET /api/live/earnings"""

    def get(self, request: Request) -> Response:
        summary = self.services.queue.earnings(self.ctx)
        return Response(serializers.EarningsSerializer(summary).data)


class UrlSlugView(PerformerAPIView):
    """Handler for POST /api/profile/slug"""

    def post(self, request: Request) -> Response:
        data = serializers.UrlSlugInputSerializer(data=request.data)
        data.is_valid(raise_exception=True)

        performer = self.services.profiles.claim_url_slug(
            self.ctx, data.validated_data["url_slug"]
        )
        return Response(serializers.PerformerSerializer(performer).data)
