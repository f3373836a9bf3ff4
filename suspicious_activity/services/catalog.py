"""Read-only catalog clients: cameras, stored videos and activity types.

Catalogs hold no state beyond a transient ``loading``/``error`` pair that a UI
can render next to the control that triggered the load. Failures are never
retried automatically.
"""

import logging
from typing import Any, Optional

from suspicious_activity.exceptions import InvalidSelection, SuspiciousActivityError
from suspicious_activity.models import ActivityType, Camera, Video
from suspicious_activity.services.api_client import ApiClient, ModelT, decode_entities

logger = logging.getLogger(__name__)

CAMERAS_PATH = "/cameras/list_cameras/"
VIDEOS_PATH = "/cameras/list_videos/"
ACTIVITY_TYPES_PATH = "/actividad-sospechosa/tipos_actividad/"


class CatalogClient:
    """Base class for list endpoints."""

    def __init__(self, client: ApiClient):
        self._client = client
        self.loading = False
        self.error: Optional[str] = None
        self._latest = 0

    async def _fetch(
        self,
        path: str,
        key: str,
        model: type[ModelT],
        params: Optional[dict[str, Any]] = None,
    ) -> list[ModelT]:
        # Only the most recent request owns the loading/error flags.
        self._latest += 1
        request_id = self._latest
        self.loading = True
        self.error = None
        try:
            result = await self._client.get(path, params=params)
            return decode_entities(model, result.unwrap(), key)
        except SuspiciousActivityError as e:
            logger.warning(f"Catalog request {path} failed: {e}")
            if request_id == self._latest:
                self.error = str(e)
            raise
        finally:
            if request_id == self._latest:
                self.loading = False


class CameraCatalogClient(CatalogClient):
    async def list_cameras(self) -> list[Camera]:
        return await self._fetch(CAMERAS_PATH, "cameras", Camera)


class VideoCatalogClient(CatalogClient):
    async def list_videos(self, camera_id: str) -> list[Video]:
        """List stored videos for one camera."""
        if not camera_id:
            raise InvalidSelection("A camera must be selected to list videos")
        return await self._fetch(
            VIDEOS_PATH, "videos", Video, params={"camera_id": camera_id}
        )


class ActivityTypeCatalogClient(CatalogClient):
    async def list_activity_types(self) -> list[ActivityType]:
        return await self._fetch(ACTIVITY_TYPES_PATH, "tipos_actividad", ActivityType)
