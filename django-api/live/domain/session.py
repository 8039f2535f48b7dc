"""Session window arithmetic.

Time left is always derived from ``session_end_time`` and the current time,
never stored.
"""

from datetime import datetime, timedelta

from live.domain.models import SessionState


def time_left(state: SessionState, now: datetime) -> timedelta | None:
    """Remaining session time clamped at zero, or None when not running."""
    if not state.is_live or state.session_end_time is None:
        return None
    return max(state.session_end_time - now, timedelta(0))


def is_expired(state: SessionState, now: datetime) -> bool:
    return (
        state.is_live
        and state.session_end_time is not None
        and now >= state.session_end_time
    )


def format_time_left(remaining: timedelta | None) -> str:
    """Render as HH:MM:SS; empty string when there is no running session."""
    if remaining is None:
        return ""
    total = int(remaining.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
