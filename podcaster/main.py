"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .config import settings
from .config.database import init_db, close_db
from .core.exceptions import PodcasterError
from .core.session import SessionBroker
from .middleware.rate_limit import limiter, rate_limit_exceeded_handler
from .schemas.shared import ErrorResponse
from .routers import auth, files, storage, uploads
from .services.upload_tasks import UploadTaskRegistry
from .utils.logger import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting application", version=settings.app_version)
    await init_db()
    yield
    # Shutdown
    logger.info("Shutting down application")
    app.state.upload_tasks.close()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Backend for uploading, listing and managing podcast audio files",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Session changes fan out to the upload registry
app.state.session_broker = SessionBroker()
app.state.upload_tasks = UploadTaskRegistry(app.state.session_broker)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(PodcasterError)
async def podcaster_exception_handler(request: Request, exc: PodcasterError):
    """Render domain errors with their kind."""
    logger.info(
        "Request failed",
        path=request.url.path,
        error_code=exc.kind.value,
        error=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, error_code=exc.kind.value).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Include routers
app.include_router(auth.router)
app.include_router(auth.callback_router)
app.include_router(files.router)
app.include_router(uploads.router)
app.include_router(storage.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "podcaster.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
