"""API router for v1 endpoints."""

from fastapi import APIRouter

from packmatch.api import connectivity, packs

router = APIRouter()

# Pack search and enhancement routes
router.include_router(packs.router, tags=["packs"])

# Network state routes
router.include_router(connectivity.router, tags=["connectivity"])
