"""System health and format endpoints."""

from fastapi import APIRouter

from tournaments import bracket_registry

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"isAlive": True}


@router.get("/formats")
async def get_formats():
    """Get tournament formats with a registered bracket generator."""
    return {"formats": [f.value for f in bracket_registry.list_formats()]}
