"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shortlinks import __version__

from .api import api_router
from .web import web_router
from .middleware.logging import LoggingMiddleware


def create_app(
    store_instance,
    registry_instance,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        store_instance: Link store (may be None until the lifespan sets it)
        registry_instance: Link registry (may be None until the lifespan sets it)
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Short Links",
        description="Time-limited short links with click analytics",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Store instances in app state for access in routes
    app.state.store = store_instance
    app.state.registry = registry_instance
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router, prefix="/api", tags=["API"])
    prefix = "/" + config.path_prefix.strip("/") if config.path_prefix.strip("/") else ""
    app.include_router(web_router, prefix=prefix, tags=["Redirect"])

    return app
