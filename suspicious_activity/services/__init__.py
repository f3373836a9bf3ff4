"""Services for the suspicious-activity analysis workflow."""

from suspicious_activity.services.alert_promoter import DetectionAlertPromoter, PromotionResult
from suspicious_activity.services.api_client import ApiClient
from suspicious_activity.services.auth import (
    Authenticator,
    SettingsAuthenticator,
    StaticTokenAuthenticator,
)
from suspicious_activity.services.catalog import (
    ActivityTypeCatalogClient,
    CameraCatalogClient,
    VideoCatalogClient,
)
from suspicious_activity.services.job_store import AnalysisJobStore
from suspicious_activity.services.orchestrator import AnalysisJobOrchestrator
from suspicious_activity.services.selection import AnalysisSelection
from suspicious_activity.services.statistics import StatisticsAggregator

__all__ = [
    "ActivityTypeCatalogClient",
    "AnalysisJobOrchestrator",
    "AnalysisJobStore",
    "AnalysisSelection",
    "ApiClient",
    "Authenticator",
    "CameraCatalogClient",
    "DetectionAlertPromoter",
    "PromotionResult",
    "SettingsAuthenticator",
    "StaticTokenAuthenticator",
    "StatisticsAggregator",
    "VideoCatalogClient",
]
