from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from courtbot import __version__
from courtbot.api import create_api_router
from courtbot.api.routers import runs as runs_router
from courtbot.api.routers import websocket as websocket_router
from courtbot.core.container import ApplicationContainer, get_container
from courtbot.core.logging import configure_logging
from courtbot.schemas import HealthResponse

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent


def _resolve_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def create_app(container: Optional[ApplicationContainer] = None) -> FastAPI:
    container = container or get_container()
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        await container.startup()
        yield
        await container.shutdown()

    app = FastAPI(
        title=settings.project_name,
        description="Court reservation jobs, scheduled booking runs and live run logs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    static_dir = _resolve_path(settings.static_dir)
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir), html=True), name="static")

    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(runs_router.router, tags=["runs"])
    app.include_router(websocket_router.router)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            scheduler_running=container.scheduler.is_running,
            active_runs=len(container.registry),
            environment=settings.environment,
        )

    return app


app = create_app()
