"""
reelfeed

FastAPI application entry point.
"""

import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from .config import get_settings
from .core.logging import setup_logging, get_logger
from .core.exceptions import register_exception_handlers
from .routers import feed_router, search_router, playback_router
from .services.feed_session import get_feed_session

# Initialize
settings = get_settings()
setup_logging()
logger = get_logger(__name__)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "app_startup",
        environment=settings.environment,
        debug=settings.debug,
        default_channel=settings.default_channel,
    )

    initial_load = None
    if settings.autoload_on_startup:
        # Load the default channel in the background so startup is not
        # blocked on the relay chain
        initial_load = asyncio.create_task(get_feed_session().start())

    yield

    if initial_load is not None and not initial_load.done():
        initial_load.cancel()

    logger.info("app_shutdown")


# Create FastAPI app
app = FastAPI(
    title="reelfeed",
    description="Vertical video feed client with relay fallback and adaptive playback",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(feed_router)
app.include_router(search_router)
app.include_router(playback_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "reelfeed",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
    }


@app.get("/health")
async def health():
    """Health check for load balancers."""
    return {"status": "healthy"}
