from .app import create_web_app
from .server import MetricsServer

__all__ = ["MetricsServer", "create_web_app"]
