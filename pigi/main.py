import logging
from typing import Optional

from fastapi import FastAPI
from pydantic import ValidationError

from pigi.api.simple import router as simple_router
from pigi.core.config import Settings, load_settings
from pigi.core.state import AppState
from pigi.data.registry import RegistryError, load_registry

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with its registry loaded.

    Everything shared between requests is created here, before the server
    accepts its first connection. A missing or malformed registry file
    raises RegistryError and the app is never built.
    """
    if settings is None:
        settings = load_settings()

    registry = load_registry(settings.repos_config_path)

    app = FastAPI(
        title="pigi",
        version="0.1.0",
        description="PEP 503 simple index serving GitHub release assets.",
    )
    app.state.app_state = AppState(settings=settings, registry=registry)

    @app.get("/health")
    async def health() -> dict:
        """
        Lightweight health check endpoint.
        """
        return {"status": "ok"}

    app.include_router(simple_router, tags=["simple"])
    return app


def run() -> None:
    """
    Console entry point: read the environment, load the registry, serve.
    """
    import uvicorn

    try:
        settings = load_settings()
    except ValidationError as e:
        configure_logging()
        logger.error("Invalid configuration: %s", e)
        raise SystemExit(1)

    configure_logging(settings.log_level)

    try:
        app = create_app(settings)
    except RegistryError as e:
        logger.error("%s", e)
        raise SystemExit(1)

    logger.info("Serving under: http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
