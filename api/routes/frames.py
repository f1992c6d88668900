from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import FrameRequest, FrameResponse, ResetResponse, SkeletonResponse
from api.services.tracking import TrackingSession
from posestream.errors import ShapeMismatch

router = APIRouter(tags=["tracking"])


def get_session(request: Request) -> TrackingSession:
    return request.app.state.session


@router.get("/skeleton", response_model=SkeletonResponse)
async def read_skeleton(session: TrackingSession = Depends(get_session)) -> SkeletonResponse:
    return session.skeleton()


@router.post("/frames", response_model=FrameResponse)
def push_frame(payload: FrameRequest, session: TrackingSession = Depends(get_session)) -> FrameResponse:
    """
    Accept one heatmap frame and return the tracked joints and bone segments. A heatmap whose
    shape does not match the configured joint count is rejected without touching joint history.
    """
    try:
        return session.push_frame(payload)
    except ShapeMismatch as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/reset", response_model=ResetResponse)
def reset_tracker(session: TrackingSession = Depends(get_session)) -> ResetResponse:
    session.reset()
    return ResetResponse(message="Joint history cleared")
