"""Health check router

Provides health check endpoints for monitoring and service discovery.

Endpoints:
- GET /health: Service health status and live thread count
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from ...api.contracts import HealthResponse
from ...config import Settings
from ...domain.thread_registry import ThreadRegistry
from ..deps import get_app_settings, get_thread_registry

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    registry: Annotated[ThreadRegistry, Depends(get_thread_registry)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthResponse:
    """API health check"""
    return HealthResponse(status="healthy", service=settings.app_name, threads=len(registry))
