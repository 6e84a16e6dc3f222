from fastapi import APIRouter

from clubhouse.api import auth, screens

api_router = APIRouter()


@api_router.get("/health", tags=["health"])
def api_health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "ok", "service": "api"}


api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(screens.public_router, prefix="/screens", tags=["screens"])
api_router.include_router(screens.admin_router, prefix="/screens", tags=["screens"])
