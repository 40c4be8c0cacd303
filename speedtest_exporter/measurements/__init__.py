"""Speedtest probe: subprocess runner and result schema."""

from .errors import LaunchFailure, ParseFailure, ProbeError, ProcessFailure
from .models import LatencyDetail, PingResult, ServerInfo, SpeedtestResult, TransferResult
from .speedtest_runner import build_command, run_speedtest

__all__ = [
    "LatencyDetail",
    "LaunchFailure",
    "ParseFailure",
    "PingResult",
    "ProbeError",
    "ProcessFailure",
    "ServerInfo",
    "SpeedtestResult",
    "TransferResult",
    "build_command",
    "run_speedtest",
]
