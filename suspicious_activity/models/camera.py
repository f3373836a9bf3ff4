"""Camera and stored video reference data."""

from pydantic import Field

from suspicious_activity.models.base import DomainModel, UTCDateTime


class Camera(DomainModel):
    """A camera registered in the catalog service."""

    id: str
    name: str
    description: str = ""
    location: str = ""


class Video(DomainModel):
    """A recorded video file stored for one camera."""

    key: str
    name: str
    size_bytes: int = Field(0, ge=0, alias="size")
    last_modified: UTCDateTime
    url: str = ""
