"""
FastAPI application entry point.

Mounts the conversation and generation routers. Running generation jobs are
cancelled when the app shuts down.
"""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nomad.conversation.conversation_api import router as conversation_router
from nomad.generation.generation_api import (
    get_registry,
    router as generation_router,
    shutdown_registry,
)
from nomad.shared.logging.config import setup_logging


# ============================================================================
# Logging configuration
# ============================================================================
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s"

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

for noisy in ("httpcore", "httpx", "openai"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

# Transition events go to a JSON-lines file instead of stdout when configured
_transition_log = os.getenv("NOMAD_TRANSITION_LOG")
if _transition_log:
    setup_logging(log_file=_transition_log)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Nomad starting")
    yield
    await shutdown_registry()
    logger.info("Nomad stopped")


app = FastAPI(
    title="Nomad",
    description="Conversational multi-city trip planner with poll-based itinerary generation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("NOMAD_CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(conversation_router)
app.include_router(generation_router)


@app.get("/")
async def root():
    """Service description and generation settings."""
    config = get_registry().config
    return {
        "name": "Nomad",
        "version": app.version,
        "endpoints": {
            "conversation": "/api/conversation",
            "generation": "/api/generation",
        },
        "generation": {
            "model": "mock" if config.use_mock_llm else config.model,
            "poll_interval_seconds": config.poll_interval_seconds,
        },
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
