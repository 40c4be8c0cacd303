"""Threaded WSGI server with signal-driven graceful shutdown."""

from __future__ import annotations

import logging
import signal
import threading
from typing import Iterable

from flask import Flask
from werkzeug.serving import make_server

LOGGER = logging.getLogger(__name__)


class MetricsServer:
    """Serves the metrics app until ``shutdown`` is called.

    Binding happens in the constructor, so an unusable host/port raises
    ``OSError`` before anything else is started.
    """

    def __init__(self, app: Flask, host: str, port: int):
        self.host = host
        self.port = port
        try:
            self._server = make_server(host, port, app, threaded=True)
        except SystemExit as exc:
            # werkzeug prints the bind error and calls sys.exit(1)
            raise OSError(f"Could not bind {host}:{port}") from exc
        # server_close() joins non-daemon request threads, letting in-flight scrapes finish
        self._server.daemon_threads = False
        self._stopping = threading.Event()

    @property
    def server_port(self) -> int:
        return self._server.server_port

    def serve_forever(self) -> None:
        LOGGER.info("Serving metrics at http://%s:%s/metrics", self.host, self.server_port)
        self._server.serve_forever()
        self._server.server_close()
        LOGGER.info("Metrics server stopped")

    def shutdown(self) -> None:
        # Blocks until serve_forever returns; must not run on the serving thread
        if self._stopping.is_set():
            return
        self._stopping.set()
        self._server.shutdown()

    def install_signal_handlers(
        self, signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM)
    ) -> None:
        def _handle(signum, _frame):
            LOGGER.info("Received %s, shutting down", signal.Signals(signum).name)
            threading.Thread(target=self.shutdown, name="metrics-shutdown", daemon=True).start()

        for signum in signals:
            signal.signal(signum, _handle)
