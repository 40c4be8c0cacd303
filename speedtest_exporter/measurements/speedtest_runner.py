"""Ookla speedtest CLI runner."""

from __future__ import annotations

import logging
import subprocess
from typing import List

from .errors import LaunchFailure, ProcessFailure
from .models import SpeedtestResult

LOGGER = logging.getLogger(__name__)

SPEEDTEST_ARGS = ("--format=json", "--accept-license", "--accept-gdpr")


def build_command(binary: str = "speedtest") -> List[str]:
    return [binary, *SPEEDTEST_ARGS]


def run_speedtest(binary: str = "speedtest") -> SpeedtestResult:
    """Run the speedtest CLI once and decode its JSON output.

    Blocks until the process exits. Raises ``LaunchFailure``,
    ``ProcessFailure`` or ``ParseFailure``; never retries.
    """

    command = build_command(binary)
    LOGGER.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise LaunchFailure(binary, exc) from exc

    if completed.returncode != 0:
        raise ProcessFailure(completed.returncode, completed.stderr)

    return SpeedtestResult.from_json(completed.stdout)
