"""Application bootstrap helpers."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .metrics import MetricRegistry
from .scheduler import SchedulerService
from .web import MetricsServer, create_web_app

__version__ = "0.3.0"

LOGGER = logging.getLogger(__name__)


class ApplicationContext:
    """Holds the shared registry and the components wired around it."""

    def __init__(self, config: AppConfig):
        self.config = config
        configure_logging(config)
        LOGGER.debug("Loaded configuration: %s", config)
        self.registry = MetricRegistry()
        self.scheduler = SchedulerService(config, self.registry)
        self.web_app = create_web_app(self.registry)

    def create_server(self) -> MetricsServer:
        return MetricsServer(self.web_app, self.config.web.host, self.config.web.port)

    def run(self) -> None:
        """Bind, start probing and serve until SIGINT/SIGTERM."""

        server = self.create_server()
        server.install_signal_handlers()
        self.scheduler.start()
        try:
            server.serve_forever()
        finally:
            self.scheduler.shutdown()


def bootstrap(
    config_path: Optional[str] = None,
    cli_overrides: Optional[Mapping[tuple, Any]] = None,
) -> ApplicationContext:
    """Load configuration and wire dependencies."""

    config = load_config(config_path, cli_overrides=cli_overrides)
    return ApplicationContext(config)
