import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import engine, initialize_database
from app.infrastructure.queue import NotificationQueueClient, QueueError
from app.interfaces.api.routes import register_routes
from app.utils import configure_logging

logger = logging.getLogger(__name__)


def create_app(queue_client: NotificationQueueClient | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Prepare the database and queue client on startup, release them on shutdown."""

        initialize_database()
        queue = queue_client or NotificationQueueClient.from_settings(settings)
        app.state.notification_queue = queue
        try:
            await queue.open()
        except QueueError:
            logger.warning(
                "Starting without the notification queue; sends will answer in degraded mode"
            )
        yield
        await queue.close()
        engine.dispose()

    app = FastAPI(title="School notification service", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
