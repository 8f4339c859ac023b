"""
FastAPI app factory.

The routes are thin wrappers over the engine, the checkpoint manager and the
workflow registry built in `workflow_engine.api.routes`.
"""

from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow_engine import __version__
from workflow_engine.api import routes
from workflow_engine.config import EngineSettings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def create_app(settings: Optional[EngineSettings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Workflow Engine API",
        description="Deterministic workflow graphs with conditional routing and checkpointed resumption",
        version=__version__
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routes.router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Liveness plus a summary of what this instance can run"""
        return {
            "status": "healthy",
            "version": __version__,
            "workflows": sorted(routes.registry.graphs),
            "checkpoint_storage": type(routes.checkpoint_storage).__name__,
        }

    logger.info(f"Workflow engine API ready with {len(routes.registry.graphs)} workflows")
    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
