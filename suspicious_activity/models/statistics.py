"""Aggregate statistics over a user's analysis jobs."""

from typing import Any

from pydantic import Field, field_validator

from suspicious_activity.models.base import DomainModel


class Statistics(DomainModel):
    """Read-only summary snapshot."""

    total_jobs: int = Field(0, ge=0, alias="total_analisis")
    completed_jobs: int = Field(0, ge=0, alias="analisis_completados")
    processing_jobs: int = Field(0, ge=0, alias="analisis_procesando")
    total_detections: int = Field(0, ge=0, alias="total_detecciones")
    detections_by_category: dict[str, int] = Field(
        default_factory=dict, alias="detecciones_por_categoria"
    )
    average_confidence: float = Field(0.0, alias="confianza_promedio")
    alerts_generated: int = Field(0, ge=0, alias="avisos_generados")

    @field_validator("average_confidence", mode="before")
    @classmethod
    def null_confidence(cls, v: Any) -> Any:
        """Backend reports null when no detection exists yet."""
        return 0.0 if v is None else v
