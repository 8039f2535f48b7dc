"""SessionClock for driving a performer's live session in the event loop.

Owns the only two time-driven behaviours of a session: the one-second tick
that ends an expired session, and the grace window that delays a manual
go-offline so it can be undone. Both are asyncio tasks and are cancelled by
stop(). A staged go-offline is persisted, so whichever clock ticks next
commits it once the grace window has passed.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from asgiref.sync import sync_to_async
from django.utils import timezone

from live.conf import LiveSettings
from live.context import PerformerContext
from live.domain import PerformerId, SessionState
from live.services.session_service import SessionService

logger = logging.getLogger(__name__)

# A tick this late means the loop stalled; logged so it is not silently lost
LATE_TICK_FACTOR = 2


class SessionClock:
    """Manages the timers of one performer's session."""

    def __init__(
        self,
        ctx: PerformerContext,
        sessions: SessionService,
        settings: LiveSettings,
        now: Callable[[], datetime] = timezone.now,
    ):
        self.ctx = ctx
        self.sessions = sessions
        self.settings = settings
        self._now = now
        self._tick_task: asyncio.Task[None] | None = None
        self._offline_task: asyncio.Task[None] | None = None
        self.finished = False
        self.auto_offline_count = 0

    @property
    def performer_id(self) -> PerformerId:
        return self.ctx.performer_id

    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    @property
    def offline_pending(self) -> bool:
        return self._offline_task is not None and not self._offline_task.done()

    def start(self) -> None:
        """Start the tick loop if it is not already running."""
        if self.is_running:
            return
        self.finished = False
        self._tick_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the tick loop and any pending offline transition."""
        self.finished = True
        for task in (self._tick_task, self._offline_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._tick_task = None
        self._offline_task = None

    async def go_live(
        self,
        cap: int | None = None,
        tags: list[str] | None = None,
        duration_minutes: int | None = None,
    ) -> SessionState:
        """Go live, or cancel a pending go-offline if one is staged.

        Cancelling leaves the running session untouched.
        """
        self._cancel_offline_task()
        state = await sync_to_async(self.sessions.go_live)(
            self.ctx, cap=cap, tags=tags, duration_minutes=duration_minutes
        )
        self.start()
        return state

    async def request_offline(self) -> bool:
        """Stage a go-offline and commit it when the grace window ends.

        The staged time is persisted first, so tick() still commits it if
        this clock is stopped before the timer fires.

        Returns:
            False if a transition is already pending or the performer is not
            live; nothing new is scheduled.
        """
        if self.offline_pending:
            logger.debug(f"Offline already pending for performer {self.performer_id}")
            return False

        state = await sync_to_async(self.sessions.request_offline)(self.ctx)
        if not state.offline_pending:
            return False
        due = state.offline_requested_at + timedelta(
            seconds=self.settings.offline_grace_seconds
        )
        delay = max((due - self._now()).total_seconds(), 0.0)
        self._offline_task = asyncio.create_task(self._commit_offline(delay))
        return True

    async def undo_offline(self) -> bool:
        """Cancel a pending go-offline. Returns True if one was cancelled."""
        cancelled = self._cancel_offline_task()
        state = await sync_to_async(self.sessions.get_state)(self.performer_id)
        if state.offline_pending:
            await sync_to_async(self.sessions.undo_offline)(self.ctx)
            cancelled = True
        return cancelled

    async def tick(self) -> bool:
        """Run one tick. Returns True if this tick ended the session."""
        state = await sync_to_async(self.sessions.get_state)(self.performer_id)
        if not state.is_live:
            if not self.offline_pending:
                self.finished = True
            return False

        if state.offline_pending:
            # Staged by a request handler or a clock that has since stopped
            committed = await sync_to_async(self.sessions.commit_staged_offline)(
                self.performer_id
            )
            if committed:
                self._cancel_offline_task()
                self.finished = True
                return True

        if state.session_end_time is not None:
            overdue = self._now() - state.session_end_time
            limit = timedelta(seconds=self.settings.tick_seconds * LATE_TICK_FACTOR)
            if overdue > limit:
                logger.warning(
                    f"Session for performer {self.performer_id} expired "
                    f"{overdue.total_seconds():.1f}s before this tick"
                )

        expired = await sync_to_async(self.sessions.expire_if_due)(self.performer_id)
        if expired:
            self.auto_offline_count += 1
            self.finished = True
            self._cancel_offline_task()
        return expired

    async def _run(self) -> None:
        while not self.finished:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"Session tick failed for performer {self.performer_id}")
            if self.finished:
                break
            await asyncio.sleep(self.settings.tick_seconds)

    async def _commit_offline(self, delay: float) -> None:
        await asyncio.sleep(delay)
        committed = await sync_to_async(self.sessions.commit_staged_offline)(
            self.performer_id, due_only=False
        )
        if committed:
            self.finished = True

    def _cancel_offline_task(self) -> bool:
        if not self.offline_pending:
            self._offline_task = None
            return False
        self._offline_task.cancel()
        self._offline_task = None
        return True


class SessionClockRegistry:
    """Manages SessionClock instances per performer."""

    def __init__(self) -> None:
        self._clocks: dict[PerformerId, SessionClock] = {}

    def get(self, performer_id: PerformerId) -> SessionClock | None:
        """Get the clock for a performer, auto-removing finished ones."""
        clock = self._clocks.get(performer_id)

        if clock and _is_done(clock):
            del self._clocks[performer_id]
            return None

        return clock

    def register(self, clock: SessionClock) -> None:
        self._clocks[clock.performer_id] = clock

    def remove(self, performer_id: PerformerId) -> None:
        self._clocks.pop(performer_id, None)

    def prune(self) -> int:
        """Drop every finished clock. Returns how many were removed."""
        done = [pid for pid, clock in self._clocks.items() if _is_done(clock)]
        for performer_id in done:
            del self._clocks[performer_id]
        return len(done)

    def __len__(self) -> int:
        return len(self._clocks)

    async def stop_all(self) -> None:
        for clock in list(self._clocks.values()):
            await clock.stop()
        self._clocks.clear()


def _is_done(clock: SessionClock) -> bool:
    return clock.finished and not clock.offline_pending
