"""Shared fixtures for the speedtest exporter tests."""
import copy
import json
from pathlib import Path

import pytest

from speedtest_exporter.measurements.models import SpeedtestResult
from speedtest_exporter.metrics import MetricRegistry

DATA_DIR = Path(__file__).resolve().parent / "data"


def _load_payload():
    with (DATA_DIR / "speedtest_result.json").open("r", encoding="utf-8") as handle:
        return json.load(handle)


@pytest.fixture
def result_json():
    """Raw CLI output captured from ``speedtest --format=json``."""
    return (DATA_DIR / "speedtest_result.json").read_text(encoding="utf-8")


@pytest.fixture
def result_payload():
    return _load_payload()


@pytest.fixture
def speedtest_result(result_payload):
    return SpeedtestResult.from_dict(result_payload)


@pytest.fixture
def make_result():
    """Build a result whose every exported value is derived from ``k``.

    Ping values are ``k`` ms, transfer bandwidth and bytes are ``k`` and
    elapsed is ``k`` seconds, so a consistent snapshot has all gauges
    equal to ``k`` once ping is scaled back to milliseconds.
    """

    def _make(k, server_id=30907, server_name="Virtual Machines", isp="Test ISP"):
        payload = copy.deepcopy(_load_payload())
        payload["ping"].update(latency=float(k), low=float(k), high=float(k))
        for direction in ("download", "upload"):
            payload[direction].update(bandwidth=k, bytes=k, elapsed=k * 1000)
        payload["server"].update(id=server_id, name=server_name)
        payload["isp"] = isp
        return SpeedtestResult.from_dict(payload)

    return _make


@pytest.fixture
def registry():
    return MetricRegistry()
