from fastapi import APIRouter

from core.config import get_settings
from schemas.api import ApiResponse


router = APIRouter()


@router.get("/health", response_model=ApiResponse[dict[str, str]])
def health_check() -> ApiResponse[dict[str, str]]:
    """Health check endpoint for monitoring and load balancer health checks."""
    settings = get_settings()
    return ApiResponse(
        success=True,
        data={"status": "healthy", "message": f"{settings.APP_NAME} API is running"},
        message="Health check successful",
    )
