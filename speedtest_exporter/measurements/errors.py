"""Failures raised by the speedtest probe."""

from __future__ import annotations

from typing import Optional


class ProbeError(Exception):
    """Base class for a failed speedtest probe."""


class LaunchFailure(ProbeError):
    """The speedtest process could not be started."""

    def __init__(self, binary: str, reason: OSError):
        self.binary = binary
        self.reason = reason
        super().__init__(f"Could not launch {binary}: {reason}")


class ProcessFailure(ProbeError):
    """The speedtest process ran but exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: Optional[str] = None):
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"speedtest exited with status {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class ParseFailure(ProbeError):
    """The speedtest output did not match the expected result schema."""
