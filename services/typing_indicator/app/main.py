"""
Main application module for the typing indicator service.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import router
from .core.config import settings
from .core.member_service import ChannelMemberService
from .core.store import SessionStore
from .core.timers import AsyncioTimerFacility
from .core.typing_rabbitmq import TypingRabbitMQClient
from .core.typing_tracker import TypingTracker

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Typing Indicator service...")
    app.state.rabbitmq_client = TypingRabbitMQClient(settings)
    app.state.typing_tracker = TypingTracker(
        app.state.rabbitmq_client,
        ChannelMemberService(),
        SessionStore.from_settings(settings),
        timers=AsyncioTimerFacility(),
        typing_timeout_ms=settings.TYPING_TIMEOUT_MS,
    ).setup()

    if not await app.state.rabbitmq_client.initialize():
        logger.error(
            "Typing Indicator service running without a message bus"
        )
    else:
        logger.info("Typing Indicator service started successfully")

    yield

    logger.info("Shutting down Typing Indicator service")
    app.state.typing_tracker.shutdown()
    await app.state.rabbitmq_client.shutdown()
    logger.info("Typing Indicator service shut down successfully")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Service tracking which channel members are typing",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    uvicorn.run(
        "services.typing_indicator.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
