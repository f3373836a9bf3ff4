"""Pydantic schemas for request bodies sent to the analysis backend."""

from pydantic import BaseModel, Field


class StartAnalysisRequest(BaseModel):
    """Request to start analyzing one stored video."""

    camera_id: str = Field(..., min_length=1, description="Camera owning the video")
    video_name: str = Field(..., min_length=1, description="Stored video file name")
