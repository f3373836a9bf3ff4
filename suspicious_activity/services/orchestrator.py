"""Orchestrates the analysis job lifecycle against the backend.

Job lifecycle: PENDING -> PROCESSING -> COMPLETED | ERROR. Jobs are created by
``submit``, advanced by caller-driven ``poll_status`` calls (there is no
internal timer) and expanded with their detections by ``fetch_detail``.
Every response is reconciled into the AnalysisJobStore, which discards
records describing an older state than the one already known.

Responses to requests issued before ``detach()`` are ignored, so a torn-down
view never applies late results.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from suspicious_activity.exceptions import (
    ApiRejected,
    InvalidSelection,
    JobNotFound,
    MalformedResponse,
    SuspiciousActivityError,
    TransportFailure,
)
from suspicious_activity.models import AnalysisJob, Camera, Video
from suspicious_activity.schemas import StartAnalysisRequest
from suspicious_activity.services.api_client import (
    ApiClient,
    decode_entities,
    decode_entity,
)
from suspicious_activity.services.job_store import AnalysisJobStore

logger = logging.getLogger(__name__)

MY_JOBS_PATH = "/actividad-sospechosa/mis_analisis/"
START_ANALYSIS_PATH = "/actividad-sospechosa/iniciar_analisis/"
CHECK_STATUS_PATH = "/actividad-sospechosa/{job_id}/verificar_estado/"
DETAIL_PATH = "/actividad-sospechosa/{job_id}/detalle_analisis/"

# Job fields a status check may report without the full record.
_STATUS_FIELDS = {
    "estado": "state",
    "estado_display": "state_display",
    "job_id": "external_job_id",
    "completado_at": "completed_at",
    "actividades_detectadas": "detection_count",
    "confianza_promedio": "average_confidence",
    "error_mensaje": "error_message",
}


class AnalysisJobOrchestrator:
    """Submits, polls and expands analysis jobs for the current user."""

    def __init__(self, client: ApiClient, store: AnalysisJobStore):
        self._client = client
        self.store = store
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def detach(self) -> None:
        """Ignore responses to every request issued so far."""
        self._generation += 1
        logger.debug(f"Orchestrator detached, generation now {self._generation}")

    def _is_current(self, generation: int, operation: str) -> bool:
        if generation != self._generation:
            logger.debug(f"Ignoring late {operation} response (generation {generation})")
            return False
        return True

    async def list_mine(self) -> list[AnalysisJob]:
        """Refresh the store with the user's jobs.

        On failure the store is left unchanged and the error propagates.
        """
        generation = self._generation
        result = await self._client.get(MY_JOBS_PATH)
        jobs = decode_entities(AnalysisJob, result.unwrap(), "analisis")
        if not self._is_current(generation, "job list"):
            return self.store.jobs()
        return self.store.replace_all(jobs)

    async def submit(
        self, camera: Optional[Camera], video: Optional[Video]
    ) -> AnalysisJob:
        """Start analyzing ``video`` recorded by ``camera``.

        Raises:
            InvalidSelection: Camera or video missing; no request is sent.
            ApiRejected: The backend refused to start the analysis.
            TransportFailure: HTTP or network failure.
        """
        if camera is None or video is None:
            raise InvalidSelection("A camera and a video must be selected")

        generation = self._generation
        body = StartAnalysisRequest(camera_id=camera.id, video_name=video.name)
        try:
            result = await self._client.post(START_ANALYSIS_PATH, json=body.model_dump())
            payload = result.unwrap()
        except SuspiciousActivityError as e:
            logger.error(
                f"Failed to start analysis of {video.name} on camera {camera.id}: {e}"
            )
            raise

        if "analisis" in payload:
            job = decode_entity(AnalysisJob, payload, "analisis")
        else:
            job = await self._locate_submitted(payload, camera, video)

        logger.info(f"Analysis job {job.id} started for {video.name} ({job.state.value})")
        if not self._is_current(generation, "submit"):
            return job
        return self.store.upsert(job)

    async def _locate_submitted(
        self, payload: dict[str, Any], camera: Camera, video: Video
    ) -> AnalysisJob:
        """Find the new job in a fresh list when the response omits it."""
        result = await self._client.get(MY_JOBS_PATH)
        jobs = decode_entities(AnalysisJob, result.unwrap(), "analisis")

        job_id = payload.get("analisis_id", payload.get("id"))
        if job_id is not None:
            matches = [job for job in jobs if job.id == job_id]
        else:
            matches = [
                job
                for job in jobs
                if job.camera_id == camera.id and job.video_name == video.name
            ]
        if not matches:
            raise MalformedResponse("Started analysis not found in job list")
        return max(matches, key=lambda job: (job.started_at, job.id))

    async def poll_status(self, job_id: int) -> Optional[AnalysisJob]:
        """Ask the backend to re-check a running job.

        Only jobs known locally in a non-terminal state are polled; anything
        else is a no-op returning the stored snapshot (or None if unknown).
        A response older than the stored state is discarded by the store.
        """
        current = self.store.get(job_id)
        if current is None or current.state.is_terminal:
            return current

        generation = self._generation
        result = await self._client.post(CHECK_STATUS_PATH.format(job_id=job_id))
        try:
            payload = result.unwrap()
        except SuspiciousActivityError as e:
            logger.warning(f"Status check for job {job_id} failed: {e}")
            raise

        if not self._is_current(generation, "status check"):
            return self.store.get(job_id)
        if job_id not in self.store:
            logger.debug(f"Job {job_id} left the store during its status check")
            return None
        reported, fields = self._decode_status(payload, current)
        if reported is None:
            # Envelope carried no job state; keep what we know.
            return self.store.get(job_id)
        return self.store.upsert(reported, fields=fields)

    @staticmethod
    def _decode_status(
        payload: dict[str, Any], current: AnalysisJob
    ) -> tuple[Optional[AnalysisJob], Optional[set[str]]]:
        """Decode a status reply into a record and the fields it reports.

        A full ``analisis`` object reports every field it carries (``None``);
        a flat reply reports only the status fields present in it.
        """
        if isinstance(payload.get("analisis"), dict):
            return decode_entity(AnalysisJob, payload, "analisis"), None

        data = {
            alias: payload[alias] for alias in _STATUS_FIELDS if alias in payload
        }
        if "estado" not in data:
            return None, None
        try:
            partial = AnalysisJob.model_validate(
                {
                    "id": current.id,
                    "camera_id": current.camera_id,
                    "video_name": current.video_name,
                    "iniciado_at": current.started_at,
                    **data,
                }
            )
        except ValidationError as e:
            raise MalformedResponse(f"Invalid status in response: {e}") from e
        return partial, {_STATUS_FIELDS[alias] for alias in data}

    async def fetch_detail(self, job_id: int) -> AnalysisJob:
        """Load the full record of a job, including its detections.

        Raises:
            JobNotFound: The job is not in the store.
        """
        if self.store.get(job_id) is None:
            raise JobNotFound(job_id)

        generation = self._generation
        result = await self._client.get(DETAIL_PATH.format(job_id=job_id))
        job = decode_entity(AnalysisJob, result.unwrap(), "analisis")
        if job.id != job_id:
            raise MalformedResponse(f"Detail for job {job_id} returned job {job.id}")

        if not self._is_current(generation, "detail"):
            return job
        return self.store.upsert(job)

    async def check_all(self) -> list[AnalysisJob]:
        """Poll every non-terminal job once; failures are logged and skipped."""
        running = [job.id for job in self.store.jobs() if not job.state.is_terminal]
        for job_id in running:
            try:
                await self.poll_status(job_id)
            except (ApiRejected, TransportFailure) as e:
                logger.warning(f"Skipping job {job_id} in status sweep: {e}")
        return self.store.jobs()

