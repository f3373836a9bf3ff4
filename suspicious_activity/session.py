"""Composition root for one operator session."""

from typing import Any, Optional

import httpx

from suspicious_activity.config import Settings, get_settings
from suspicious_activity.services import (
    ActivityTypeCatalogClient,
    AnalysisJobOrchestrator,
    AnalysisJobStore,
    AnalysisSelection,
    ApiClient,
    Authenticator,
    CameraCatalogClient,
    DetectionAlertPromoter,
    SettingsAuthenticator,
    StatisticsAggregator,
    VideoCatalogClient,
)


class AnalysisSession:
    """Wires the catalogs, job store, orchestrator and promoter together.

    One session owns one API client and one job store; closing it detaches
    the orchestrator so responses still in flight are ignored.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        authenticator: Optional[Authenticator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.client = ApiClient(
            self.settings.api_url,
            authenticator or SettingsAuthenticator(self.settings),
            timeout=self.settings.request_timeout,
            transport=transport,
        )
        self.store = AnalysisJobStore()
        self.cameras = CameraCatalogClient(self.client)
        self.videos = VideoCatalogClient(self.client)
        self.activity_types = ActivityTypeCatalogClient(self.client)
        self.orchestrator = AnalysisJobOrchestrator(self.client, self.store)
        self.selection = AnalysisSelection(self.videos, self.orchestrator)
        self.promoter = DetectionAlertPromoter(self.client, self.orchestrator)
        self.statistics = StatisticsAggregator(self.client)

    async def close(self) -> None:
        self.orchestrator.detach()
        await self.client.close()

    async def __aenter__(self) -> "AnalysisSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
