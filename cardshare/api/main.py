from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from cardshare.core.config import Settings, settings
from cardshare.core.container import DependencyContainer, cleanup_dependencies, init_dependencies
from cardshare.core.logging import setup_logging

from .middleware.rate_limiting import RateLimitMiddleware
from .routes import card_routes, health_routes, share_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_dependencies()
    # Provision the upload directory so StaticFiles can serve it
    DependencyContainer.get_asset_store().is_available()
    yield
    # Shutdown
    await cleanup_dependencies()


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings (Settings, optional): Settings to use instead of the environment's

    Returns:
        FastAPI: Configured application instance
    """
    app_settings = app_settings or settings
    DependencyContainer.configure(app_settings)
    setup_logging(app_settings.log_level, app_settings.log_file)

    app = FastAPI(
        title="Card Share API",
        description="API for publishing cards and sharing them by link",
        version="1.0.0",
        lifespan=lifespan,
    )
    # Add middleware
    app.add_middleware(
        RateLimitMiddleware, calls=app_settings.rate_limit_calls, period=app_settings.rate_limit_period
    )

    # Owned uploads are served from the public root under their stored path
    app.mount(
        f"/{app_settings.upload_url_prefix}",
        StaticFiles(directory=app_settings.upload_dir, check_dir=False),
        name="uploads",
    )

    # Include routers
    app.include_router(card_routes.router)
    app.include_router(share_routes.router)
    app.include_router(health_routes.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("cardshare.api.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
