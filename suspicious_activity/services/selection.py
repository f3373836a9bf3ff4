"""Camera and video selection feeding new analysis submissions."""

import logging
from typing import Optional

from suspicious_activity.exceptions import (
    AuthMissing,
    InvalidSelection,
    SuspiciousActivityError,
)
from suspicious_activity.models import AnalysisJob, Camera, Video
from suspicious_activity.services.catalog import VideoCatalogClient
from suspicious_activity.services.orchestrator import AnalysisJobOrchestrator

logger = logging.getLogger(__name__)


class AnalysisSelection:
    """Picker state for the "new analysis" flow.

    Selecting a camera resets the chosen video and reloads the camera's
    video list. A list that arrives after the operator has already moved on
    to another camera is dropped. Load failures are kept in ``video_error``
    for display next to the picker instead of being raised.
    """

    def __init__(
        self,
        videos: VideoCatalogClient,
        orchestrator: AnalysisJobOrchestrator,
    ):
        self._catalog = videos
        self._orchestrator = orchestrator
        self._generation = 0
        self.camera: Optional[Camera] = None
        self.video: Optional[Video] = None
        self.videos: list[Video] = []
        self.video_error: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self._catalog.loading

    async def select_camera(self, camera: Camera) -> list[Video]:
        self._generation += 1
        generation = self._generation
        self.camera = camera
        self.video = None
        self.videos = []
        self.video_error = None

        try:
            videos = await self._catalog.list_videos(camera.id)
        except AuthMissing:
            raise
        except SuspiciousActivityError as e:
            if generation == self._generation:
                self.video_error = str(e)
            return []

        if generation != self._generation:
            logger.debug(f"Dropping video list for camera {camera.id}; selection changed")
            return self.videos
        self.videos = videos
        return videos

    def select_video(self, key: str) -> Video:
        """Choose one of the loaded videos by storage key."""
        for video in self.videos:
            if video.key == key or video.name == key:
                self.video = video
                return video
        raise InvalidSelection(f"Video {key} is not available for the selected camera")

    def clear(self) -> None:
        self._generation += 1
        self.camera = None
        self.video = None
        self.videos = []
        self.video_error = None

    async def submit(self) -> AnalysisJob:
        return await self._orchestrator.submit(self.camera, self.video)
