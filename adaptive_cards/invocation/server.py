"""FastAPI application for the adaptive card engine."""
from __future__ import annotations

from fastapi import FastAPI

from adaptive_cards.invocation.routes import router


def create_app() -> FastAPI:
    app = FastAPI(title="Adaptive Card Engine", version="0.1.0")
    app.include_router(router)
    return app


app = create_app()
