"""Liveness endpoint for hosts that ping the process over HTTP."""

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse


def create_health_app() -> FastAPI:
    app = FastAPI(title="Expense Assistant", docs_url=None, redoc_url=None)

    @app.get("/", response_class=PlainTextResponse)
    def liveness() -> str:
        """Report that the process is up; expects no payload."""
        return "Active"

    return app
