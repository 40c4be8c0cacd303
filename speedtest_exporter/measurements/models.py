"""Dataclasses for a decoded speedtest result."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict

from .errors import ParseFailure


def _section(data: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    value = _require(data, key, path)
    if not isinstance(value, dict):
        raise ParseFailure(f"{path}{key} must be an object, got {type(value).__name__}")
    return value


def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise ParseFailure(f"missing field {path}{key}")
    return data[key]


def _int(data: Dict[str, Any], key: str, path: str) -> int:
    value = _require(data, key, path)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseFailure(f"{path}{key} must be an integer, got {value!r}")
    return value


def _float(data: Dict[str, Any], key: str, path: str) -> float:
    value = _require(data, key, path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseFailure(f"{path}{key} must be a number, got {value!r}")
    return float(value)


def _str(data: Dict[str, Any], key: str, path: str) -> str:
    value = _require(data, key, path)
    if not isinstance(value, str):
        raise ParseFailure(f"{path}{key} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class LatencyDetail:
    """Latency observed while a transfer was running, in milliseconds."""

    iqm: float
    low: float
    high: float
    jitter: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "") -> "LatencyDetail":
        return cls(
            iqm=_float(data, "iqm", path),
            low=_float(data, "low", path),
            high=_float(data, "high", path),
            jitter=_float(data, "jitter", path),
        )


@dataclass(frozen=True)
class PingResult:
    """Idle latency in milliseconds."""

    jitter: float
    latency: float
    low: float
    high: float

    def latency_seconds(self) -> float:
        return self.latency / 1000.0

    def low_seconds(self) -> float:
        return self.low / 1000.0

    def high_seconds(self) -> float:
        return self.high / 1000.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "ping.") -> "PingResult":
        return cls(
            jitter=_float(data, "jitter", path),
            latency=_float(data, "latency", path),
            low=_float(data, "low", path),
            high=_float(data, "high", path),
        )


@dataclass(frozen=True)
class TransferResult:
    """One direction of the test: bandwidth in bytes/s, elapsed in milliseconds."""

    bandwidth: int
    bytes: int
    elapsed: int
    latency: LatencyDetail

    def elapsed_seconds(self) -> float:
        return self.elapsed / 1000.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str) -> "TransferResult":
        return cls(
            bandwidth=_int(data, "bandwidth", path),
            bytes=_int(data, "bytes", path),
            elapsed=_int(data, "elapsed", path),
            latency=LatencyDetail.from_dict(
                _section(data, "latency", path), f"{path}latency."
            ),
        )


@dataclass(frozen=True)
class ServerInfo:
    id: int
    name: str
    location: str
    country: str
    host: str
    port: int
    ip: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "server.") -> "ServerInfo":
        return cls(
            id=_int(data, "id", path),
            name=_str(data, "name", path),
            location=_str(data, "location", path),
            country=_str(data, "country", path),
            host=_str(data, "host", path),
            port=_int(data, "port", path),
            ip=_str(data, "ip", path),
        )


@dataclass(frozen=True)
class SpeedtestResult:
    """A complete, validated result of one ``speedtest --format=json`` run.

    Instances are only built through :meth:`from_json` or :meth:`from_dict`,
    which either return a fully populated result or raise
    :class:`~speedtest_exporter.measurements.errors.ParseFailure`.
    Keys the CLI emits that are not modelled here are ignored.
    """

    ping: PingResult
    download: TransferResult
    upload: TransferResult
    server: ServerInfo
    isp: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeedtestResult":
        if not isinstance(data, dict):
            raise ParseFailure(f"result must be an object, got {type(data).__name__}")
        return cls(
            ping=PingResult.from_dict(_section(data, "ping", "")),
            download=TransferResult.from_dict(_section(data, "download", ""), "download."),
            upload=TransferResult.from_dict(_section(data, "upload", ""), "upload."),
            server=ServerInfo.from_dict(_section(data, "server", "")),
            isp=_str(data, "isp", ""),
        )

    @classmethod
    def from_json(cls, raw: str) -> "SpeedtestResult":
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ParseFailure(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)
