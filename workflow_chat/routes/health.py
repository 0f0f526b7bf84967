from fastapi import APIRouter

from workflow_chat.models.response import HealthStatus

router = APIRouter()


@router.get("/health", response_model=HealthStatus)
async def health():
    """Health check endpoint"""
    return HealthStatus(status="ok")
