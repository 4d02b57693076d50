"""
FastAPI application entry - EPICS bridge

Functions:
    1. create the FastAPI application
    2. application lifespan management
    3. build the EPICS bridge and connect channels
    4. start the poll cycle and the record scheduler
"""

from contextlib import asynccontextmanager
import datetime
import logging
import logging.handlers
import sys
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.exceptions import InitError
from app.routers import health, channels, alarms
from app.services.bridge import BridgeContext
from config import get_settings, APP_ROOT


# 1. Logging (daily rotation)
def setup_logging(log_dir: Path = APP_ROOT / "logs", level: int = logging.INFO):
    log_dir.mkdir(exist_ok=True)

    today = datetime.datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"epics_fe.log.{today}"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Console: WARNING and above
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File: rotate at midnight, keep 30 days
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_file),
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8',
        delay=False
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    file_handler.suffix = "%Y-%m-%d"
    root_logger.addHandler(file_handler)

    logging.info(f"[logging] log directory: {log_dir}")


logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Application lifespan
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build, start and stop the EPICS bridge"""
    settings = get_settings()
    app.state.bridge = None
    logger.info("Starting EPICS bridge...")

    if not settings.enable_polling:
        logger.info("[startup] polling disabled (ENABLE_POLLING=false)")
        yield
        return

    bridge = BridgeContext.from_settings(settings)
    app.state.bridge = bridge

    try:
        bridge.start()
        logger.info("[startup] poll cycle and record scheduler started")
    except InitError as e:
        # Fatal for the bridge; the API stays up to report it
        logger.error(f"[startup] EPICS initialization failed: {e}")

    yield

    logger.info("[shutdown] stopping EPICS bridge...")
    bridge.stop()
    logger.info("[shutdown] all resources released")


# ------------------------------------------------------------
# FastAPI application
# ------------------------------------------------------------
def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="EPICS Bridge",
        description="EPICS Channel Access to shared store bridge",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(channels.router)
    app.include_router(alarms.router)

    return app


app = create_app()


def main():
    import uvicorn

    settings = get_settings()
    setup_logging(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run(app, host=settings.server_host, port=settings.server_port, log_config=None)


if __name__ == "__main__":
    main()
