"""
Main FastAPI application for Meeting Reporter.
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..models.errors import ErrorCategory, MeetingReporterError
from ..utils.config import get_config
from ..utils.error_handler import error_handler
from ..utils.logging import configure_logging, get_logger
from .models import ErrorResponse
from .routes import router
from .websocket import ws_router

logger = get_logger(__name__)

STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NETWORK: 502,
    ErrorCategory.EXTERNAL_API: 502,
    ErrorCategory.MODEL: 502,
    ErrorCategory.TOOL: 500,
    ErrorCategory.CONFIGURATION: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config = get_config()
    configure_logging(config.log_level, config.json_logging)
    logger.info("Starting Meeting Reporter API...", analysis_enabled=config.analysis_enabled)
    yield
    logger.info("Shutting down Meeting Reporter API...")


app = FastAPI(
    title="Meeting Reporter API",
    description="Multi-agent calendar reporting with AI meeting analysis",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log requests and add a processing time header."""
    start_time = time.time()
    logger.info(f"Request: {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"Response: {response.status_code} - {process_time:.3f}s")
    return response


app.include_router(router, prefix="/api/v1")
app.include_router(ws_router, prefix="/api/v1/ws")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Meeting Reporter API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health"
    }


@app.exception_handler(MeetingReporterError)
async def meeting_reporter_error_handler(request: Request, exc: MeetingReporterError):
    """Translate domain errors into structured JSON responses."""
    described = error_handler.describe(exc, context={"path": request.url.path})
    return JSONResponse(
        status_code=STATUS_BY_CATEGORY.get(exc.category, 500),
        content=ErrorResponse(
            error=exc.category.value.upper(),
            message=exc.message,
            details={
                "error_id": described.error.error_id,
                "suggested_actions": described.suggested_actions,
            }
        ).model_dump(mode="json")
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
