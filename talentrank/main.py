from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from talentrank.utils.logging_config import configure_for_environment, get_logger

# Configure logging before the routers build their services
configure_for_environment()

from talentrank.routers import cvs, jds, reports  # noqa: E402
from talentrank.middleware.error_handlers import (  # noqa: E402
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
)
from talentrank.services.pipeline import settings, store  # noqa: E402

logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("TalentRank API starting up...")
    logger.info(f"Store backend: {store.__class__.__name__}")
    logger.info(f"Pipeline settings: {settings.model_dump()}")

    yield

    logger.info("TalentRank API shutting down...")


app = FastAPI(title="TalentRank API", version=VERSION, lifespan=lifespan)

# Middleware is LIFO: the exception handler is added first so it ends up outermost
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the TalentRank API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/settings")
async def get_settings():
    """Active pipeline policy flags"""
    return settings.model_dump()


app.include_router(cvs.router, prefix="/api/candidates", tags=["candidates"])
app.include_router(jds.router, prefix="/api/jds", tags=["job-descriptions"])
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])

logger.info("TalentRank API initialized successfully")
