"""
Unit tests for speedtest_exporter/metrics.py

Covers value mapping, series retention and the update/render lock.
"""
import threading
from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry
from prometheus_client.parser import text_string_to_metric_families

from speedtest_exporter.metrics import GAUGES, LABEL_NAMES, MetricRegistry, labels_for

LABELS = ("Virtual Machines", "30907", "Test ISP")


def _samples(body):
    """Map (metric name, label tuple) -> value from an exposition body."""
    samples = {}
    for family in text_string_to_metric_families(body.decode("utf-8")):
        for sample in family.samples:
            key = tuple(sample.labels[name] for name in LABEL_NAMES)
            samples[(sample.name, key)] = sample.value
    return samples


class TestRegistration:

    def test_all_gauges_registered(self, registry):
        assert set(registry.names) == set(GAUGES)
        assert len(registry.names) == 9

    def test_instances_do_not_share_state(self, speedtest_result):
        first = MetricRegistry()
        second = MetricRegistry()
        first.update(speedtest_result)
        assert second.sample("speedtest_download_bytes", LABELS) is None

    def test_external_collector_registry(self):
        collector_registry = CollectorRegistry()
        registry = MetricRegistry(collector_registry)
        assert registry.registry is collector_registry

    def test_empty_registry_renders_without_samples(self, registry):
        body = registry.render()
        assert _samples(body) == {}
        assert b"# HELP speedtest_download_bytes" in body

    def test_content_type(self, registry):
        assert registry.content_type.startswith("text/plain")


class TestUpdate:

    def test_labels_for(self, speedtest_result):
        assert labels_for(speedtest_result) == LABELS

    def test_values_after_update(self, registry, speedtest_result):
        registry.update(speedtest_result)

        expected = {
            "speedtest_ping_latency_seconds": 0.01228,
            "speedtest_ping_low_seconds": 0.012192,
            "speedtest_ping_high_seconds": 0.012837,
            "speedtest_download_bytes": 306775755,
            "speedtest_download_bandwidth_bytes": 39924051,
            "speedtest_download_duration_seconds": 7.6,
            "speedtest_upload_bytes": 105913720,
            "speedtest_upload_bandwidth_bytes": 13008272,
            "speedtest_upload_duration_seconds": 8.303,
        }
        for name, value in expected.items():
            assert registry.sample(name, LABELS) == value

    def test_set_replaces_value(self, registry):
        registry.set("speedtest_download_bytes", 10, LABELS)
        registry.set("speedtest_download_bytes", 4, LABELS)
        assert registry.sample("speedtest_download_bytes", LABELS) == 4

    def test_set_unknown_gauge(self, registry):
        with pytest.raises(KeyError):
            registry.set("speedtest_nope", 1, LABELS)

    def test_series_retained_across_servers(self, registry, make_result):
        registry.update(make_result(5, server_id=1, server_name="Alpha"))
        registry.update(make_result(7, server_id=2, server_name="Beta"))

        alpha = ("Alpha", "1", "Test ISP")
        beta = ("Beta", "2", "Test ISP")
        for name in GAUGES:
            assert registry.sample(name, alpha) is not None
            assert registry.sample(name, beta) is not None
        assert registry.sample("speedtest_upload_bytes", alpha) == 5
        assert registry.sample("speedtest_upload_bytes", beta) == 7

        series = {key for (_, key) in _samples(registry.render())}
        assert series == {alpha, beta}

    def test_isp_is_a_dimension(self, registry, make_result):
        registry.update(make_result(3, isp="ISP One"))
        registry.update(make_result(4, isp="ISP Two"))
        assert registry.sample("speedtest_download_bytes", ("Virtual Machines", "30907", "ISP One")) == 3
        assert registry.sample("speedtest_download_bytes", ("Virtual Machines", "30907", "ISP Two")) == 4

    def test_update_goes_through_shared_setter(self, registry, speedtest_result):
        held = []
        original = registry._set_locked

        def record(name, value, labels):
            held.append(registry._lock.locked())
            original(name, value, labels)

        with patch.object(registry, "_set_locked", side_effect=record) as setter:
            registry.update(speedtest_result)
            registry.set("speedtest_upload_bytes", 1, LABELS)

        assert setter.call_count == len(GAUGES) + 1
        assert all(held)
        assert registry.sample("speedtest_upload_bytes", LABELS) == 1


class TestConsistency:

    def test_render_never_sees_half_applied_update(self, registry, make_result):
        results = [make_result(1), make_result(2)]
        registry.update(results[0])
        stop = threading.Event()
        torn = []

        def writer():
            i = 0
            while not stop.is_set():
                registry.update(results[i % 2])
                i += 1

        def reader():
            for _ in range(300):
                samples = _samples(registry.render())
                values = set()
                for (name, _), value in samples.items():
                    if name.startswith("speedtest_ping_"):
                        value = round(value * 1000)
                    values.add(value)
                if len(values) != 1:
                    torn.append(values)

        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        try:
            readers = [threading.Thread(target=reader) for _ in range(3)]
            for thread in readers:
                thread.start()
            for thread in readers:
                thread.join()
        finally:
            stop.set()
            writer_thread.join()

        assert torn == []

    def test_update_waits_for_render(self, registry, make_result):
        registry.update(make_result(1))
        updated = threading.Event()

        def update():
            registry.update(make_result(2))
            updated.set()

        with registry._lock:
            thread = threading.Thread(target=update)
            thread.start()
            assert not updated.wait(0.2)
        thread.join(timeout=5)
        assert updated.is_set()
        assert registry.sample("speedtest_download_bytes", LABELS) == 2
