from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from api.routes import frames as frame_routes
from api.services.tracking import TrackingSession
from posestream.config import PoseConfig


def create_app(config: Optional[PoseConfig] = None) -> FastAPI:
    app = FastAPI(
        title="Pose Tracking API",
        description="REST API wrapping the posestream decode/track/publish pipeline.",
        version="0.1.0",
    )
    app.state.session = TrackingSession(config)
    app.include_router(frame_routes.router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
