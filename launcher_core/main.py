# launcher_core/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from launcher_core import __version__
from launcher_core.api.routes import commands
from launcher_core.config import settings
from launcher_core.registry import get_registry
from launcher_core.utils.async_utils import cleanup_executor

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


async def _warm_catalog() -> None:
    try:
        catalog = await get_registry().get_available_commands()
        logger.info(f"✅ Command catalog warmed ({len(catalog)} commands)")
    except Exception as e:
        logger.error(f"❌ Catalog warm-up failed: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ========== STARTUP ==========
    logger.info("🚀 Launcher core starting up (env=%s)", settings.environment)

    # Discovery takes a few seconds; serve requests meanwhile; the first
    # catalog request joins this rebuild instead of starting another.
    warmup = asyncio.create_task(_warm_catalog())

    yield  # Application is running

    # ========== SHUTDOWN ==========
    logger.info("Launcher core shutting down...")
    warmup.cancel()
    # the rebuild behind the warm-up is shielded; stop it before the pool goes away
    await get_registry().close()
    try:
        await warmup
    except asyncio.CancelledError:
        pass
    cleanup_executor()
    logger.info("Launcher core shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Launcher Core API",
    description="Discovers installed applications and System Settings panels and opens them",
    version=__version__,
    lifespan=lifespan
)

# Add CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "catalog_cached": get_registry().is_catalog_fresh(),
    }


# Include routes
app.include_router(commands.router)
