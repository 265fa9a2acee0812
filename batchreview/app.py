"""FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from batchreview.db import StorageEngine
from batchreview.endpoints import router
from batchreview.exceptions import (
    BatchReviewError, DuplicateKeyError, IntegrityError,
    NotFoundError, PersistenceError, ValidationError
)
from batchreview.settings import settings

logger = logging.getLogger(__name__)

# Error kind -> HTTP status
ERROR_STATUS_CODES = {
    NotFoundError: 404,
    DuplicateKeyError: 409,
    ValidationError: 400,
    IntegrityError: 404,  # Parent row missing, e.g. commenting on an unknown asset
    PersistenceError: 500,
}


def configure_logging(level: str = None) -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the storage engine at startup and release it at shutdown."""
    configure_logging()
    engine = StorageEngine(settings.DATABASE_PATH)
    engine.initialize()
    app.state.storage_engine = engine
    yield
    engine.close()


app = FastAPI(
    title="Batch Review",
    description="Upload image batches, share a link, approve/reject and comment",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (configure for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BatchReviewError)
async def batch_review_error_handler(request: Request, exc: BatchReviewError):
    """Translate store errors into JSON error responses."""
    status_code = next(
        (code for kind, code in ERROR_STATUS_CODES.items() if isinstance(exc, kind)),
        500,
    )
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": "Failed to save changes"})
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Include API router
app.include_router(router)

# Uploaded images, referenced by asset filepath
app.mount(
    settings.UPLOADS_URL_PREFIX,
    StaticFiles(directory=settings.STORAGE_BASE_PATH, check_dir=False),
    name="uploads"
)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
