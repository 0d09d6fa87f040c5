import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from guardwatch.api.dashboard import router as dashboard_router
from guardwatch.core.config import settings
from guardwatch.services.dashboard import get_dashboard, refresh

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load both datasets once before serving."""
    configure_logging()
    board = await refresh(get_dashboard())
    if board.status == "error":
        logger.error("Starting without data: %s", board.error)
    else:
        logger.info("Datasets loaded, dashboard ready.")

    yield

    logger.info("Shutting down GuardWatch backend.")


app = FastAPI(
    title="GuardWatch API",
    description="Guard activity and shift attendance dashboard.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
