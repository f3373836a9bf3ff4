"""Analysis job entity and its state machine."""

from enum import Enum
from typing import Optional

from pydantic import Field

from suspicious_activity.models.activity import Detection
from suspicious_activity.models.base import DomainModel, UTCDateTime


class JobState(str, Enum):
    """Job processing state (backend wire values)."""

    PENDING = "PENDIENTE"
    PROCESSING = "PROCESANDO"
    COMPLETED = "COMPLETADO"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        """Position in the PENDING < PROCESSING < terminal order."""
        if self is JobState.PENDING:
            return 0
        if self is JobState.PROCESSING:
            return 1
        return 2

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.ERROR)


class JobAction(str, Enum):
    """Action an operator may take on a job in its current state."""

    CHECK_STATUS = "check_status"
    VIEW_DETAIL = "view_detail"


class AnalysisJob(DomainModel):
    """One submitted video-analysis request."""

    id: int
    camera_id: str
    video_name: str
    video_url: str = ""
    state: JobState = Field(alias="estado")
    state_display: str = Field("", alias="estado_display")
    external_job_id: Optional[str] = Field(None, alias="job_id")
    started_at: UTCDateTime = Field(alias="iniciado_at")
    completed_at: Optional[UTCDateTime] = Field(None, alias="completado_at")
    requester_name: str = Field("", alias="usuario_nombre")
    detection_count: int = Field(0, ge=0, alias="actividades_detectadas")
    average_confidence: Optional[float] = Field(
        None, ge=0.0, le=100.0, alias="confianza_promedio"
    )
    error_message: Optional[str] = Field(None, alias="error_mensaje")
    # None until a detail fetch has returned the detection list.
    detections: Optional[tuple[Detection, ...]] = Field(None, alias="detecciones")

    @property
    def detail_loaded(self) -> bool:
        return self.detections is not None

    @property
    def actions(self) -> frozenset[JobAction]:
        """Actions exposed for the current state; ERROR exposes none."""
        if self.state.is_terminal:
            if self.state is JobState.COMPLETED:
                return frozenset({JobAction.VIEW_DETAIL})
            return frozenset()
        return frozenset({JobAction.CHECK_STATUS})

    def find_detection(self, detection_id: int) -> Optional[Detection]:
        for detection in self.detections or ():
            if detection.id == detection_id:
                return detection
        return None
