import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class LiveConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "live"
    verbose_name = "Live song requests"

    def ready(self) -> None:
        from live import signals  # noqa: F401
        from live.conf import LiveSettings

        LiveSettings.from_django().validate(logger)
