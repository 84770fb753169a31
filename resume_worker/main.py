"""Main FastAPI application hosting the resume worker."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from resume_worker import __version__
from resume_worker.api.routes import health
from resume_worker.config import settings
from resume_worker.logging_utils import configure_logging
from resume_worker.worker import ResumeWorker

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the worker with the app and shut it down on exit."""
    worker = ResumeWorker(settings)
    await worker.start()
    app.state.worker = worker
    try:
        yield
    finally:
        await worker.stop()
        app.state.worker = None


# Create FastAPI app
app = FastAPI(
    title="Resume Worker",
    description="Background worker generating tailored resumes from queued jobs",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router, tags=["Health"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "resume_worker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
