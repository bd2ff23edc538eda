"""Health check endpoint."""

from fastapi import APIRouter

from pipeline import __version__
from utils.clock import iso_timestamp, utc_now

SERVICE_NAME = "devops-agent-router"

router = APIRouter()


@router.get("/health")
def health_check():
    """Liveness probe; not gated."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": iso_timestamp(utc_now()),
    }
