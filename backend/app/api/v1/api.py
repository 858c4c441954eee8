"""API v1: aggregates all routers under a single prefix."""

from fastapi import APIRouter

from app.api.v1.routers import generation, layouts, pitchbooks

router = APIRouter()
router.include_router(pitchbooks.router)
router.include_router(layouts.router)
router.include_router(generation.router)
