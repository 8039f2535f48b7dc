"""Queue service - read-side views for the dashboard and the public page.

Nothing here is stored: every view is projected from the ledger and session
state at the moment it is requested or a change arrives.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from live.conf import LiveSettings
from live.context import PerformerContext
from live.domain import Gig, Performer, SessionState, Song
from live.domain.catalog import catalog_tags, visible_songs
from live.domain.errors import PerformerNotFoundError
from live.domain.ledger import EarningsSummary, summarize_earnings
from live.domain.queue import QueueView, project_queue
from live.domain.session import format_time_left
from live.realtime import Change, Subscription
from live.services.session_service import SessionService
from live.stores.interfaces import LiveStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    session: SessionState
    queue: QueueView
    all_tags: tuple[str, ...]
    time_left: timedelta | None

    @property
    def time_left_display(self) -> str:
        return format_time_left(self.time_left)


@dataclass(frozen=True)
class CatalogEntry:
    song: Song
    is_played: bool


@dataclass(frozen=True)
class PublicQueueEntry:
    song_title: str
    requester_count: int


@dataclass(frozen=True)
class PublicPage:
    """What the audience sees on a performer's page."""

    performer: Performer
    is_live: bool
    time_left: timedelta | None
    songs: tuple[CatalogEntry, ...]
    queue: tuple[PublicQueueEntry, ...]
    remaining_capacity: int | None
    gigs: tuple[Gig, ...]

    @property
    def accepting_requests(self) -> bool:
        return self.is_live and self.remaining_capacity != 0

    @property
    def time_left_display(self) -> str:
        return format_time_left(self.time_left)


class QueueService:
    """Service for projected queue views and earnings."""

    def __init__(
        self, store: LiveStore, sessions: SessionService, settings: LiveSettings
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._settings = settings

    def project(self, ctx: PerformerContext) -> QueueView:
        state = self._sessions.get_state(ctx.performer_id)
        return project_queue(self._store.list_requests(ctx.performer_id), state)

    def dashboard(self, ctx: PerformerContext) -> DashboardView:
        state = self._sessions.get_state(ctx.performer_id)
        requests = self._store.list_requests(ctx.performer_id)
        return DashboardView(
            session=state,
            queue=project_queue(requests, state),
            all_tags=tuple(catalog_tags(self._store.list_songs(ctx.performer_id))),
            time_left=self._sessions.time_left(state),
        )

    def performer_for_slug(self, slug: str) -> Performer:
        """Raises PerformerNotFoundError if no performer has claimed the slug."""
        performer = self._store.get_performer_by_slug(slug)
        if performer is None:
            raise PerformerNotFoundError(slug)
        return performer

    def public_page(self, slug: str) -> PublicPage:
        """Return the audience view for the performer owning ``slug``."""
        performer = self.performer_for_slug(slug)

        state = self._sessions.get_state(performer.id)
        catalog = self._store.list_songs(performer.id)
        queue = project_queue(self._store.list_requests(performer.id), state)
        played = queue.played_song_ids

        # Tag filtering only applies while a session is running
        songs = visible_songs(catalog, state.active_tags) if state.is_live else catalog
        return PublicPage(
            performer=performer,
            is_live=state.is_live,
            time_left=self._sessions.time_left(state),
            songs=tuple(CatalogEntry(song, song.id in played) for song in songs),
            queue=tuple(
                PublicQueueEntry(g.song_title, g.requester_count)
                for g in queue.grouped_pending
            )
            if state.is_live
            else (),
            remaining_capacity=queue.remaining_capacity,
            gigs=tuple(self._store.list_gigs(performer.id)),
        )

    def watch(
        self, ctx: PerformerContext, callback: Callable[[QueueView], None]
    ) -> Subscription:
        """Push a fresh QueueView to ``callback`` after every relevant change.

        Returns:
            Subscription; close() it when the dashboard goes away.
        """

        def on_change(change: Change) -> None:
            logger.debug(
                f"Recomputing queue for {change.performer_id} after "
                f"{change.collection.value} {change.kind.value}"
            )
            callback(self.project(ctx))

        return self._store.subscribe(ctx.performer_id, on_change)

    def earnings(self, ctx: PerformerContext) -> EarningsSummary:
        return summarize_earnings(
            self._store.list_transactions(ctx.performer_id),
            self._settings.platform_commission,
        )
