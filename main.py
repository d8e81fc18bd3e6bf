"""
HSC Selections API.

Serves the HSC subject catalog and each student's selected subjects.

Run:
    python main.py
    uvicorn main:app --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from exceptions import AppError
from logging_config import configure_logging
from routes import hsc_subjects_router, selected_subjects_router

configure_logging(settings)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the catalog size on startup so a bad connection shows up early."""
    logger.info("application_starting", environment=settings.environment, debug=settings.debug)

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info("database_connected", subjects_count=db_status["subjects_count"])
    else:
        # Keep serving; /health reports degraded
        logger.error("database_connection_failed", error=db_status.get("error"))

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="HSC Selections",
    description="HSC subject catalog and per-student subject selections",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(hsc_subjects_router)
app.include_router(selected_subjects_router)


@app.get("/health")
async def health_check():
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": db_status
    }


@app.get("/")
async def root():
    return {
        "name": "HSC Selections API",
        "version": API_VERSION,
        "health": "/health",
        "endpoints": {
            "hsc_subjects": hsc_subjects_router.prefix,
            "selected_subjects": selected_subjects_router.prefix,
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    AppErrors raised outside a route body.

    Auth dependencies run before the route's own try/except, so 401 and 403
    arrive here.
    """
    logger.info(
        "request_rejected",
        path=request.url.path,
        method=request.method,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
