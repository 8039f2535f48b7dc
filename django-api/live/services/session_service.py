"""Session service - live toggle, session window, cap and tag filter.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from django.utils import timezone

from live.conf import LiveSettings
from live.context import PerformerContext
from live.domain import PerformerId, RequestCap, SessionState
from live.domain.errors import ErrorCode, PerformerNotFoundError, ValidationError
from live.domain.session import is_expired, time_left
from live.stores.interfaces import LiveStore

logger = logging.getLogger(__name__)

MAX_SESSION_MINUTES = 24 * 60


class SessionService:
    """Service for a performer's live session state."""

    def __init__(
        self,
        store: LiveStore,
        settings: LiveSettings,
        now: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._settings = settings
        self._now = now

    def get_state(self, performer_id: PerformerId) -> SessionState:
        """Return the stored state, or an unsaved offline default."""
        state = self._store.get_session_state(performer_id)
        if state is None:
            return SessionState(
                performer_id=performer_id,
                request_cap=RequestCap(self._settings.default_request_cap),
            )
        return state

    def go_live(
        self,
        ctx: PerformerContext,
        cap: int | None = None,
        tags: Iterable[str] | None = None,
        duration_minutes: int | None = None,
    ) -> SessionState:
        """Open a session window of ``duration_minutes`` starting now.

        Omitted arguments keep the stored cap and tags and use the default
        session length. If a go-offline is pending it is cancelled instead and
        the running session is returned unchanged.

        Raises:
            PerformerNotFoundError: If the performer does not exist.
            ValidationError: If the performer has no public URL or no songs,
                or an argument is out of range.
        """
        performer_id = ctx.performer_id
        current = self.get_state(performer_id)
        if current.offline_pending:
            return self.undo_offline(ctx)

        performer = self._store.get_performer(performer_id)
        if performer is None:
            raise PerformerNotFoundError(str(performer_id))
        if not performer.has_public_page or not self._store.list_songs(performer_id):
            raise ValidationError(
                "Set your custom page URL and add songs before going live",
                code=ErrorCode.NOT_READY_TO_GO_LIVE,
            )

        if duration_minutes is None:
            duration_minutes = self._settings.default_session_minutes
        state = current.with_changes(
            is_live=True,
            offline_requested_at=None,
            session_end_time=self._now() + _duration(duration_minutes),
            request_cap=_cap(cap) if cap is not None else current.request_cap,
            active_tags=frozenset(tags) if tags is not None else current.active_tags,
        )
        state = self._store.save_session_state(state)
        logger.info(
            f"Performer {performer_id} is live until {state.session_end_time} "
            f"(cap {state.request_cap.value}, {len(state.active_tags)} active tags)"
        )
        return state

    def go_offline(self, ctx: PerformerContext) -> SessionState:
        """Close the session now and apply the configured offline policy."""
        performer_id = ctx.performer_id
        state = self._end_session(performer_id)
        if state is None:
            return self.get_state(performer_id)
        return state

    def request_offline(self, ctx: PerformerContext) -> SessionState:
        """Stage a go-offline that commits once the grace window has passed.

        Nothing is scheduled here. The staged time is persisted and
        commit_staged_offline ends the session when it is due, so the
        transition survives the process that requested it. Requesting again
        while one is pending keeps the original time.
        """
        state = self.get_state(ctx.performer_id)
        if not state.is_live or state.offline_pending:
            return state
        state = self._store.save_session_state(
            state.with_changes(offline_requested_at=self._now())
        )
        logger.info(
            f"Performer {ctx.performer_id} going offline in "
            f"{self._settings.offline_grace_seconds:g}s unless undone"
        )
        return state

    def undo_offline(self, ctx: PerformerContext) -> SessionState:
        """Cancel a pending go-offline; the session keeps its end time."""
        state = self.get_state(ctx.performer_id)
        if not state.offline_pending:
            return state
        state = self._store.save_session_state(
            state.with_changes(offline_requested_at=None)
        )
        logger.info(f"Go-offline for performer {ctx.performer_id} undone")
        return state

    def commit_staged_offline(
        self, performer_id: PerformerId, due_only: bool = True
    ) -> bool:
        """End the session if its staged go-offline is due.

        With ``due_only`` False the grace window is skipped, but the go-offline
        must still be staged, so an undo always wins.

        Returns True only for the call that performed the transition.
        """
        cutoff = self._now()
        if due_only:
            cutoff -= timedelta(seconds=self._settings.offline_grace_seconds)
        return self._end_session(performer_id, staged_before=cutoff) is not None

    def set_request_cap(self, ctx: PerformerContext, cap: int) -> SessionState:
        state = self.get_state(ctx.performer_id).with_changes(request_cap=_cap(cap))
        return self._store.save_session_state(state)

    def set_active_tags(self, ctx: PerformerContext, tags: Iterable[str]) -> SessionState:
        state = self.get_state(ctx.performer_id).with_changes(
            active_tags=frozenset(tag for tag in tags if tag)
        )
        return self._store.save_session_state(state)

    def reset_active_tags(self, ctx: PerformerContext) -> SessionState:
        """Make every song visible again."""
        return self.set_active_tags(ctx, ())

    def update_session_timer(
        self, ctx: PerformerContext, duration_minutes: int
    ) -> SessionState:
        """Move the end of a running session to ``duration_minutes`` from now.

        Raises:
            ValidationError: If the performer is not live.
        """
        state = self.get_state(ctx.performer_id)
        if not state.is_live:
            raise ValidationError(
                "You are not live", code=ErrorCode.PERFORMER_OFFLINE
            )
        state = state.with_changes(
            session_end_time=self._now() + _duration(duration_minutes)
        )
        return self._store.save_session_state(state)

    def time_left(self, state: SessionState) -> timedelta | None:
        return time_left(state, self._now())

    def expire_if_due(self, performer_id: PerformerId) -> bool:
        """Go offline if the session window has elapsed.

        The store only ends the session if its end time is still at or before
        now, so a session re-armed after this call read it stays live.

        Returns True only for the call that performed the transition.
        """
        now = self._now()
        state = self._store.get_session_state(performer_id)
        if state is None or not is_expired(state, now):
            return False
        if self._end_session(performer_id, expired_at=now) is None:
            logger.debug(f"Session for performer {performer_id} changed, not expiring")
            return False
        logger.info(
            f"Session for performer {performer_id} ended at "
            f"{state.session_end_time}, went offline"
        )
        return True

    def _end_session(
        self,
        performer_id: PerformerId,
        expired_at: datetime | None = None,
        staged_before: datetime | None = None,
    ) -> SessionState | None:
        policy = self._settings.offline_policy
        state = self._store.end_session(
            performer_id,
            policy.reset_active_tags,
            expired_at=expired_at,
            staged_before=staged_before,
        )
        if state is None:
            return None
        if policy.clear_requests:
            deleted = self._store.delete_requests(performer_id)
            logger.info(f"Cleared {deleted} requests for performer {performer_id}")
        logger.info(f"Performer {performer_id} is offline")
        return state


def _cap(value: int) -> RequestCap:
    try:
        return RequestCap(int(value))
    except (TypeError, ValueError) as e:
        raise ValidationError("Request cap must be a whole number, 0 or more") from e


def _duration(minutes: int) -> timedelta:
    if not 1 <= int(minutes) <= MAX_SESSION_MINUTES:
        raise ValidationError(
            f"Session length must be between 1 and {MAX_SESSION_MINUTES} minutes"
        )
    return timedelta(minutes=int(minutes))
