"""Run session clocks for every live performer.

Ends sessions whose window has elapsed even when no dashboard is open.
Live performers are re-scanned every ``--scan-interval`` seconds so sessions
started from the API are picked up.
"""

import asyncio
import logging

from asgiref.sync import sync_to_async
from django.core.management.base import BaseCommand

from live.conf import LiveSettings
from live.context import PerformerContext
from live.services import LiveServices
from live.session_clock import SessionClock, SessionClockRegistry
from live.stores.django_store import DjangoLiveStore

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Tick live sessions and take performers offline when their time is up"

    def add_arguments(self, parser):
        parser.add_argument(
            "--scan-interval",
            type=float,
            default=10.0,
            help="Seconds between scans for newly live performers",
        )
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single scan and tick, then exit",
        )

    def handle(self, *args, **options):
        settings = LiveSettings.from_django()
        store = DjangoLiveStore()
        services = LiveServices.build(store, settings)
        registry = SessionClockRegistry()
        try:
            asyncio.run(
                self._supervise(
                    store,
                    services,
                    settings,
                    registry,
                    options["scan_interval"],
                    options["once"],
                )
            )
        except KeyboardInterrupt:
            self.stdout.write("Session clock stopped")

    async def _supervise(
        self,
        store: DjangoLiveStore,
        services: LiveServices,
        settings: LiveSettings,
        registry: SessionClockRegistry,
        scan_interval: float,
        once: bool,
    ) -> None:
        try:
            while True:
                pruned = registry.prune()
                if pruned:
                    logger.info(f"Dropped {pruned} finished session clocks")
                live = await sync_to_async(store.list_live_performers)()
                for performer_id in live:
                    if registry.get(performer_id) is not None:
                        continue
                    clock = SessionClock(
                        PerformerContext(performer_id), services.sessions, settings
                    )
                    registry.register(clock)
                    if once:
                        await clock.tick()
                    else:
                        clock.start()
                        logger.info(f"Watching session for performer {performer_id}")
                if once:
                    return
                await asyncio.sleep(scan_interval)
        finally:
            await registry.stop_all()
