# src/here/main.py
"""Main entry point for the Here registry server."""

from __future__ import annotations

from fastapi import FastAPI

from here.api.v1 import here_router
from here.core.settings import Settings, settings
from here.services.reaper import LeaseReaper, ReaperConfig


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the registry application for ``app_settings``."""
    app_settings = app_settings or settings

    app = FastAPI(
        title=f"{app_settings.app_name} API",
        description="Presence lease registry",
        version=app_settings.app_version,
    )
    app.state.settings = app_settings
    app.state.reaper = None

    app.include_router(here_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        if app_settings.reaper_enabled:
            reaper = LeaseReaper(ReaperConfig.from_settings(app_settings))
            await reaper.start()
            app.state.reaper = reaper

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        reaper: LeaseReaper | None = getattr(app.state, "reaper", None)
        if reaper:
            await reaper.stop()
            app.state.reaper = None

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    return app


app = create_app()
