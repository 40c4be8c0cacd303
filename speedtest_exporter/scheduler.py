"""Background scheduler orchestration."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import AppConfig
from .measurements.errors import ProbeError
from .measurements.models import SpeedtestResult
from .measurements.speedtest_runner import run_speedtest
from .metrics import MetricRegistry

LOGGER = logging.getLogger(__name__)

JOB_ID = "speedtest-probe"


class SchedulerService:
    """Runs the speedtest probe on a fixed interval and feeds the registry.

    The job executes on APScheduler's worker pool, so the blocking probe
    never holds up the scheduler thread or the HTTP request threads.
    """

    def __init__(
        self,
        config: AppConfig,
        registry: MetricRegistry,
        probe: Optional[Callable[[], SpeedtestResult]] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.probe = probe or (lambda: run_speedtest(config.speedtest.binary))
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self.started = False

    def start(self) -> None:
        if self.started:
            LOGGER.warning("Scheduler already started, ignoring duplicate start request")
            return

        interval = self.config.scheduler.interval_minutes
        self.scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(minutes=interval),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()
        self.started = True
        LOGGER.info("Scheduler started with interval %s minutes", interval)

    def shutdown(self) -> None:
        # An in-flight probe is abandoned
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False

    def run_cycle(self) -> bool:
        """Run one probe and publish it. Returns True when gauges were updated."""

        LOGGER.info("Starting speedtest at %s", datetime.now(timezone.utc).isoformat())
        try:
            result = self.probe()
        except ProbeError as exc:
            LOGGER.error("Speedtest failed, keeping previous metrics: %s", exc)
            return False
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.exception("Unexpected error while running speedtest: %s", exc)
            return False

        self.registry.update(result)
        LOGGER.info(
            "Speedtest via %s (%s): ping %.2f ms, down %.2f Mbps, up %.2f Mbps",
            result.server.name,
            result.server.id,
            result.ping.latency,
            result.download.bandwidth * 8 / 1_000_000,
            result.upload.bandwidth * 8 / 1_000_000,
        )
        return True
