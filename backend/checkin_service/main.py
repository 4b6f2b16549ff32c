from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Callable, Optional
import logging
import uvicorn

# Import routers
from checkin_service.api.errors import register_exception_handlers
from checkin_service.api.routes import attendees, bridge, certificates, checkins, health, sessions
from checkin_service.bridge import CardScanBridge, Channel, SerialChannel
from checkin_service.core.config import Settings, settings
from checkin_service.core.logging import setup_logging
from checkin_service.db.session import build_engine, init_db
from checkin_service.services import (
    AttendeeDirectory,
    CertificateIssuer,
    CheckinLedger,
    PlaceholderRenderer,
    SessionRegistry,
)
from checkin_service.stores import MemoryStore, SqlStore, Store

logger = logging.getLogger(__name__)

async def build_store(config: Settings) -> Store:
    """Create the configured store, creating tables when asked to"""
    if config.STORE_BACKEND == "memory":
        logger.info("📦 Using in-memory store")
        return MemoryStore()
    if config.STORE_BACKEND != "sql":
        raise ValueError(f"Unknown STORE_BACKEND {config.STORE_BACKEND!r}")

    engine = build_engine(config.DATABASE_URL, echo=config.DEBUG)
    if config.CREATE_TABLES:
        logger.info("📦 Creating database tables...")
        await init_db(engine)
    store = SqlStore(engine)
    if not await store.ping():
        await store.close()
        raise RuntimeError("Database connection failed")
    logger.info("✅ Database connection successful")
    return store

def create_app(
    config: Settings = settings,
    channel_factory: Optional[Callable[[], Channel]] = None,
) -> FastAPI:
    """Build the FastAPI application; services are wired in the lifespan"""

    def serial_channel() -> Channel:
        return SerialChannel(
            config.BRIDGE_PORT,
            config.BRIDGE_BAUDRATE,
            read_timeout=config.BRIDGE_READ_TIMEOUT,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan events for startup and shutdown"""
        # Startup
        logger.info(f"🚀 Starting {config.PROJECT_NAME}...")
        store = await build_store(config)

        directory = AttendeeDirectory(store)
        registry = SessionRegistry(store)
        ledger = CheckinLedger(store)
        issuer = CertificateIssuer(
            store, PlaceholderRenderer(config.CERTIFICATE_PLACEHOLDER.encode())
        )
        card_bridge = CardScanBridge(
            channel_factory or serial_channel,
            directory,
            registry,
            ledger,
            backoff_initial=config.BRIDGE_BACKOFF_INITIAL,
            backoff_max=config.BRIDGE_BACKOFF_MAX,
            max_retries=config.BRIDGE_MAX_RETRIES,
            dedup_window=config.BRIDGE_DEDUP_WINDOW_SECONDS,
        )

        app.state.store = store
        app.state.directory = directory
        app.state.registry = registry
        app.state.ledger = ledger
        app.state.issuer = issuer
        app.state.bridge = card_bridge

        if config.BRIDGE_ENABLED:
            await card_bridge.start()
        else:
            logger.info("Card-scan bridge disabled")

        yield

        # Shutdown
        logger.info("👋 Shutting down...")
        await card_bridge.stop()
        await store.close()

    # Create FastAPI app
    app = FastAPI(
        title=config.PROJECT_NAME,
        description="Talk check-in with RFID card scans, manual check-in and certificates",
        version=config.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    prefix = config.API_PREFIX
    app.include_router(health.router, prefix=prefix, tags=["Health"])
    app.include_router(attendees.router, prefix=prefix, tags=["Attendees"])
    app.include_router(sessions.router, prefix=prefix, tags=["Sessions"])
    app.include_router(checkins.router, prefix=prefix, tags=["Check-in"])
    app.include_router(certificates.router, prefix=prefix, tags=["Certificates"])
    app.include_router(bridge.router, prefix=prefix, tags=["Bridge"])

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "service": config.PROJECT_NAME,
            "version": config.VERSION,
            "status": "operational",
            "docs": "/docs",
            "endpoints": {
                "health": f"{prefix}/health",
                "attendees": f"{prefix}/attendees",
                "sessions": f"{prefix}/sessions",
                "checkin": f"{prefix}/checkin",
                "bridge_status": f"{prefix}/bridge/status",
            },
        }

    return app

# Setup logging
setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, reload=False)
