"""API v1 module."""

from fastapi import APIRouter

from procura.api.v1.endpoints import approval_configurations, signatures

api_router = APIRouter()

# Include routers
api_router.include_router(signatures.router)
api_router.include_router(approval_configurations.router)
