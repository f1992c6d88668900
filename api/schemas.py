from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class FrameRequest(BaseModel):
    """
    One heatmap frame pushed by an inference worker, validated via Pydantic for parsing and OpenAPI docs.
    """
    heatmap: List[List[List[float]]] = Field(..., description="Confidence volume indexed [row][col][joint].")
    texture_width: int = Field(..., description="Display texture width in pixels.")
    texture_height: int = Field(..., description="Display texture height in pixels.")

    @field_validator("heatmap")
    @classmethod
    def heatmap_not_empty(cls, v: List[List[List[float]]]) -> List[List[List[float]]]:
        if not v or not v[0]:
            raise ValueError("heatmap must have at least one row and one column")
        return v

    @field_validator("texture_width", "texture_height")
    @classmethod
    def texture_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("texture dimensions must be positive")
        return v


class JointOut(BaseModel):
    joint: int
    name: str
    source: str = Field(..., description="observed, extrapolated, or hidden.")
    visible: bool
    x: Optional[float] = None
    y: Optional[float] = None
    confidence: float


class SegmentOut(BaseModel):
    name: str
    category: str
    visible: bool
    start: Optional[List[float]] = None
    end: Optional[List[float]] = None


class FrameResponse(BaseModel):
    frame_index: int
    joints: List[JointOut]
    bones: List[SegmentOut]


class BoneOut(BaseModel):
    start: int
    end: int
    name: str
    category: str
    color: str
    width: float


class SkeletonResponse(BaseModel):
    joints: List[str]
    bones: List[BoneOut]
    confidence_threshold: float = Field(..., description="Threshold in percent.")


class ResetResponse(BaseModel):
    message: str
    status: str = Field("cold", description="Tracker state after the reset.")
