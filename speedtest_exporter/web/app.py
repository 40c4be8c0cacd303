"""Flask application factory and HTTP routes."""

from __future__ import annotations

from flask import Flask, Response

from ..metrics import MetricRegistry


def create_web_app(registry: MetricRegistry) -> Flask:
    app = Flask(__name__)

    @app.get("/metrics")
    def metrics():
        return Response(registry.render(), status=200, content_type=registry.content_type)

    return app
