"""
Crypto Advisor Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cryptoadvisor.core.config import settings
from cryptoadvisor.core.logging import configure_logging
from cryptoadvisor.api.v1 import router as api_v1_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    configure_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    from cryptoadvisor.db.database import init_db, close_db
    await init_db()

    from cryptoadvisor.services.evaluation import EvaluationScheduler
    scheduler = None
    if settings.enable_scheduler:
        scheduler = EvaluationScheduler()
        scheduler.start()
    else:
        logger.info("Evaluation scheduler disabled (enable_scheduler=false)")

    yield

    # Shutdown
    logger.info("Shutting down...")
    if scheduler:
        await scheduler.stop()

    from cryptoadvisor.services.market_data import close_http_session
    await close_http_session()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Crypto Advisor API

    ## Architecture
    - **Candle Ingestor**: OHLCV klines from Binance Futures
    - **Indicator Engine**: Technical indicators (pure Python/NumPy)
    - **Price Oracle**: TradingView scanner with CoinGecko fallback
    - **Recommendation Evaluator**: Grades AI recommendations against live prices

    ## Core Principles
    - AI suggests, the evaluator keeps score
    - A recommendation is graded once and never re-opened
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - dashboard origins
cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
if settings.allowed_origins:
    cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Crypto Advisor Backend API",
        "docs": "/docs",
        "health": "/health",
    }
