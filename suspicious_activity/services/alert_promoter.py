"""Promotion of detections into published alerts.

The notification backend creates the alert; this module only issues the
request and records the resulting alert id on the detection inside the job
store. Promotion is one-way: an already promoted detection returns its
existing alert id without another request, and concurrent promotions of the
same detection share a single request.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from suspicious_activity.exceptions import (
    DetectionNotFound,
    MalformedResponse,
    SuspiciousActivityError,
)
from suspicious_activity.services.api_client import ApiClient
from suspicious_activity.services.job_store import AnalysisJobStore
from suspicious_activity.services.orchestrator import AnalysisJobOrchestrator

logger = logging.getLogger(__name__)

GENERATE_ALERT_PATH = "/actividad-sospechosa/{detection_id}/generar_aviso/"


@dataclass(frozen=True)
class PromotionResult:
    """Outcome of a successful promotion."""

    detection_id: int
    alert_id: int
    already_promoted: bool = False


class DetectionAlertPromoter:
    """Turns detections into alerts through the notification service."""

    def __init__(self, client: ApiClient, orchestrator: AnalysisJobOrchestrator):
        self._client = client
        self._orchestrator = orchestrator
        self._in_flight: dict[int, asyncio.Task] = {}

    @property
    def store(self) -> AnalysisJobStore:
        return self._orchestrator.store

    async def promote(self, detection_id: int) -> PromotionResult:
        """Publish an alert for a detection of a fetched job.

        Raises:
            DetectionNotFound: No loaded job detail contains the detection.
            ApiRejected: The notification service refused; message verbatim.
            TransportFailure: HTTP or network failure.
        """
        found = self.store.find_detection(detection_id)
        if found is None:
            raise DetectionNotFound(detection_id)
        job, detection = found
        if detection.alert_generated and detection.alert_id is not None:
            return PromotionResult(detection_id, detection.alert_id, already_promoted=True)

        task = self._in_flight.get(detection_id)
        if task is None:
            task = asyncio.ensure_future(self._promote(job.id, detection_id))
            self._in_flight[detection_id] = task
            task.add_done_callback(lambda done: self._forget(detection_id, done))
        # Cancelling one caller must not abort the request for the others.
        return await asyncio.shield(task)

    def _forget(self, detection_id: int, task: asyncio.Task) -> None:
        if self._in_flight.get(detection_id) is task:
            del self._in_flight[detection_id]

    async def _promote(self, job_id: int, detection_id: int) -> PromotionResult:
        generation = self._orchestrator.generation
        result = await self._client.post(
            GENERATE_ALERT_PATH.format(detection_id=detection_id)
        )
        try:
            payload = result.unwrap()
        except SuspiciousActivityError as e:
            logger.error(f"Failed to generate alert for detection {detection_id}: {e}")
            raise

        alert_id = _extract_alert_id(payload)
        if alert_id is None:
            # Response carried no id; the refreshed detail has it.
            job = await self._orchestrator.fetch_detail(job_id)
            detection = job.find_detection(detection_id)
            if detection is None or detection.alert_id is None:
                raise MalformedResponse("Alert id missing from response")
            return PromotionResult(detection_id, detection.alert_id)

        logger.info(f"Alert {alert_id} generated for detection {detection_id}")
        if generation != self._orchestrator.generation:
            return PromotionResult(detection_id, alert_id)
        try:
            self.store.apply_alert(detection_id, alert_id)
        except DetectionNotFound:
            logger.debug(
                f"Detection {detection_id} left the store before alert {alert_id} was recorded"
            )
        return PromotionResult(detection_id, alert_id)


def _extract_alert_id(payload: dict[str, Any]) -> Optional[int]:
    candidates: list[Any] = [payload.get("aviso_id")]
    alert = payload.get("aviso")
    if isinstance(alert, dict):
        candidates.append(alert.get("id"))
    detection = payload.get("deteccion")
    if isinstance(detection, dict):
        candidates.append(detection.get("aviso_id"))

    for value in candidates:
        if value is None:
            continue
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid alert id in response: {value!r}") from e
    return None
