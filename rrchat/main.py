from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rrchat.core.config import settings
from rrchat.utils.logging import get_logger, setup_logging

from rrchat.api.chat import router as chat_router
from rrchat.api.health import router as health_router

logger = get_logger("rrchat.main")

app = FastAPI(
    title=settings.app_name,
    description="Read-retrieve-read chat over an indexed document corpus",
    version="1.0.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router, prefix="/api")     # /api/chat
app.include_router(health_router, prefix="/api")   # /api/health


@app.on_event("startup")
async def on_startup():
    setup_logging()
    logger.info("[OK] %s started (%s)", settings.app_name, settings.environment)


@app.on_event("shutdown")
async def on_shutdown():
    """Deliver in-flight telemetry before the process exits."""
    from rrchat.api.deps import get_telemetry

    flush = getattr(get_telemetry(), "flush", None)
    if flush is not None:
        await flush()
    logger.info("[OK] Shutdown complete")
