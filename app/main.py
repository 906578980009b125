"""Main FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.config import settings
from app.core.session_manager import session_manager
from app.middleware.session import SessionMiddleware
import logging

from app.api.chat import router as chat_router
from app.api.session import router as session_router

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manages application startup and shutdown events."""
    logger.info("Starting Automation Chat Gateway")
    await session_manager.start()

    yield

    logger.info("Shutting down Automation Chat Gateway")
    await session_manager.stop()


app = FastAPI(
    title="Automation Chat Gateway",
    description="Chat with automation systems and submit the actions they prepare",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(SessionMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-ID"],
)

app.include_router(chat_router)
app.include_router(session_router)


@app.get("/")
async def root():
    """Provides basic information about the running gateway."""
    return {
        "message": "Automation Chat Gateway",
        "status": "running",
        "workflow_mode": settings.workflow_mode,
        "chat_api_base": settings.chat_api_base,
    }


@app.get("/health")
async def health_check():
    """Performs a health check of the gateway."""
    return {
        "status": "healthy",
        "active_sessions": session_manager.active_sessions,
    }
