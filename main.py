import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ticket_notifications.application.use_cases.notifications import (
    get_notification_dispatcher,
)
from ticket_notifications.config import get_settings
from ticket_notifications.infrastructure.database import engine, initialize_database
from ticket_notifications.infrastructure.notifications import notification_publisher
from ticket_notifications.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables, bind the live channel to this loop and release everything on exit."""

    initialize_database()
    notification_publisher.bind_loop(asyncio.get_running_loop())
    try:
        yield
    finally:
        notification_publisher.bind_loop(None)
        if get_notification_dispatcher.cache_info().currsize:
            get_notification_dispatcher().shutdown(wait=True)
            get_notification_dispatcher.cache_clear()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the notification service application."""

    app = FastAPI(title="Ticket notifications", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[get_settings().app_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
