"""Prometheus gauges fed from speedtest results."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from .measurements.models import SpeedtestResult

LOGGER = logging.getLogger(__name__)

LABEL_NAMES = ("server_name", "server_id", "isp")

# name -> (help, value extractor); units are converted here, not in the gauge
GAUGES: Dict[str, Tuple[str, Callable[[SpeedtestResult], float]]] = {
    "speedtest_ping_latency_seconds": (
        "Speedtest ping latency in seconds",
        lambda result: result.ping.latency_seconds(),
    ),
    "speedtest_ping_low_seconds": (
        "Speedtest lowest ping latency in seconds",
        lambda result: result.ping.low_seconds(),
    ),
    "speedtest_ping_high_seconds": (
        "Speedtest highest ping latency in seconds",
        lambda result: result.ping.high_seconds(),
    ),
    "speedtest_download_bytes": (
        "Number of bytes downloaded during speedtest",
        lambda result: result.download.bytes,
    ),
    "speedtest_download_bandwidth_bytes": (
        "Speedtest download bandwidth in bytes/s",
        lambda result: result.download.bandwidth,
    ),
    "speedtest_download_duration_seconds": (
        "Speedtest download duration in seconds",
        lambda result: result.download.elapsed_seconds(),
    ),
    "speedtest_upload_bytes": (
        "Number of bytes uploaded during speedtest",
        lambda result: result.upload.bytes,
    ),
    "speedtest_upload_bandwidth_bytes": (
        "Speedtest upload bandwidth in bytes/s",
        lambda result: result.upload.bandwidth,
    ),
    "speedtest_upload_duration_seconds": (
        "Speedtest upload duration in seconds",
        lambda result: result.upload.elapsed_seconds(),
    ),
}


def labels_for(result: SpeedtestResult) -> Tuple[str, str, str]:
    return (result.server.name, str(result.server.id), result.isp)


class MetricRegistry:
    """Holds the exporter's gauges and serializes them for scraping.

    The same instance is shared by the scheduler (writer) and the web app
    (reader). ``update`` and ``render`` take one lock, so a scrape sees
    either all values of a probe cycle or none of them. Series are never
    removed: a result from a different server adds a new label tuple.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._lock = threading.Lock()
        self._gauges: Dict[str, Gauge] = {
            name: Gauge(name, help_text, LABEL_NAMES, registry=self.registry)
            for name, (help_text, _) in GAUGES.items()
        }

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._gauges)

    def set(self, name: str, value: float, labels: Tuple[str, ...]) -> None:
        """Replace the value of one series, creating it if needed."""

        with self._lock:
            self._set_locked(name, value, labels)

    def update(self, result: SpeedtestResult) -> None:
        labels = labels_for(result)
        values = {name: extract(result) for name, (_, extract) in GAUGES.items()}
        with self._lock:
            for name, value in values.items():
                self._set_locked(name, value, labels)
        LOGGER.debug("Updated %d gauges for %s", len(values), labels)

    def _set_locked(self, name: str, value: float, labels: Tuple[str, ...]) -> None:
        # caller holds self._lock
        self._gauges[name].labels(*labels).set(value)

    def render(self) -> bytes:
        with self._lock:
            return generate_latest(self.registry)

    def sample(self, name: str, labels: Tuple[str, ...]) -> Optional[float]:
        with self._lock:
            return self.registry.get_sample_value(name, dict(zip(LABEL_NAMES, labels)))
