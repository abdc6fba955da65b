"""FastAPI application factory for the presentation-layer bridge.

JSON only: the UI renders everything itself. Components are attached to
``app.state`` by main.py's lifespan (or directly by tests).
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from eva import __version__
from eva.api.routes import actions, api, ws
from eva.api.routes.ws import DecisionHub


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        Configured FastAPI application with the decision hub and routes.
    """
    app = FastAPI(
        title="EVA Trading Core",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.hub = DecisionHub()

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/api")
    app.include_router(ws.router)

    return app
