from fastapi import FastAPI

from .notifications import router as notifications_router
from .preferences import router as preferences_router
from .ticket_events import router as ticket_events_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    # Preferences first so "/notifications/preferences" is not shadowed.
    app.include_router(preferences_router)
    app.include_router(notifications_router)
    app.include_router(ticket_events_router)
