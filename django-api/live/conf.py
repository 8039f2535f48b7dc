"""Runtime settings for the live request queue.

Values come from the ``LIVE_QUEUE`` dict in Django settings and are provided
to services via dependency injection.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings as django_settings

DEFAULTS = {
    "DEFAULT_REQUEST_CAP": 5,
    "DEFAULT_SESSION_MINUTES": 60,
    "OFFLINE_GRACE_SECONDS": 5.0,
    "TICK_SECONDS": 1.0,
    "PLATFORM_COMMISSION": "0.20",
    "OFFLINE_CLEARS_REQUESTS": False,
    "OFFLINE_RESETS_TAGS": True,
}


@dataclass(frozen=True)
class OfflinePolicy:
    """What going offline does to the performer's data."""

    clear_requests: bool = False
    reset_active_tags: bool = True


@dataclass(frozen=True)
class LiveSettings:
    """Runtime settings for live sessions."""

    default_request_cap: int = 5
    default_session_minutes: int = 60
    offline_grace_seconds: float = 5.0
    tick_seconds: float = 1.0
    platform_commission: Decimal = Decimal("0.20")
    offline_policy: OfflinePolicy = OfflinePolicy()

    @staticmethod
    def from_django() -> "LiveSettings":
        """Load settings from ``settings.LIVE_QUEUE``, falling back to defaults."""
        values = {**DEFAULTS, **getattr(django_settings, "LIVE_QUEUE", {})}
        return LiveSettings(
            default_request_cap=int(values["DEFAULT_REQUEST_CAP"]),
            default_session_minutes=int(values["DEFAULT_SESSION_MINUTES"]),
            offline_grace_seconds=float(values["OFFLINE_GRACE_SECONDS"]),
            tick_seconds=float(values["TICK_SECONDS"]),
            platform_commission=Decimal(str(values["PLATFORM_COMMISSION"])),
            offline_policy=OfflinePolicy(
                clear_requests=bool(values["OFFLINE_CLEARS_REQUESTS"]),
                reset_active_tags=bool(values["OFFLINE_RESETS_TAGS"]),
            ),
        )

    def validate(self, logger: logging.Logger) -> None:
        """Log warnings for settings that are legal but probably unintended."""
        if not Decimal("0") <= self.platform_commission < Decimal("1"):
            logger.warning(
                f"PLATFORM_COMMISSION={self.platform_commission} is outside [0, 1), "
                "payout figures will be wrong"
            )
        if self.offline_policy.clear_requests:
            logger.info("Going offline will delete all requests for the performer")
