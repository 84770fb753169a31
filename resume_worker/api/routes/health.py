"""Health check endpoints."""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from resume_worker import __version__
from resume_worker.config import settings

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint; 503 when any component is down."""
    worker = getattr(request.app.state, "worker", None)
    if worker is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": "resume-worker", "components": {}, "dependencies": {}},
        )

    health = await worker.health_check()
    return JSONResponse(
        status_code=200 if health["healthy"] else 503,
        content={
            "status": "healthy" if health["healthy"] else "unhealthy",
            "service": "resume-worker",
            "environment": settings.ENVIRONMENT,
            "llm_provider": settings.LLM_PROVIDER,
            "components": health["components"],
            "dependencies": health["dependencies"],
            "uptime_seconds": health["uptime_seconds"],
        },
    )


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Resume Worker",
        "version": __version__,
        "status": "running",
    }
