from fastapi import APIRouter

from courtbot.api.routers import defaults, jobs


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(jobs.router, prefix="/jobs", tags=["reservations"])
    router.include_router(defaults.router, prefix="/form-defaults", tags=["reservations"])
    return router


__all__ = [
    "create_api_router",
]
