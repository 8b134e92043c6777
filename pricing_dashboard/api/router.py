from fastapi import APIRouter

from pricing_dashboard.api.endpoints import ai, approvals, auth, documents

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(documents.router, tags=["Documents"])
api_router.include_router(ai.router, prefix="/ai", tags=["AI"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])

__all__ = ["api_router"]
