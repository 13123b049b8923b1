"""Health and status endpoints."""

from fastapi import APIRouter, Depends

from ...studio import Studio
from ..deps import get_studio

router = APIRouter()


@router.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "choreo-studio"}


@router.get("/api/status")
def api_status(studio: Studio = Depends(get_studio)):
    """Report which vendor integrations are configured."""
    status = studio.status_report()
    message = status.pop("message")
    return {"success": True, "status": status, "message": message}
