"""Detectable activity categories and per-detection records."""

from enum import Enum
from typing import Any, Optional

from pydantic import Field, computed_field, field_validator, model_validator

from suspicious_activity.models.base import DomainModel, UTCDateTime


class ActivityCategory(str, Enum):
    """Activity category as reported by the backend."""

    SOSPECHOSA = "SOSPECHOSA"
    ACCIDENTE = "ACCIDENTE"
    ANIMAL = "ANIMAL"
    OTRO = "OTRO"


class ActivityType(DomainModel):
    """Reference data describing one detectable activity."""

    id: int
    name: str = Field(alias="nombre")
    category: ActivityCategory = Field(ActivityCategory.OTRO, alias="categoria")
    category_display: str = Field("", alias="categoria_display")
    description: str = Field("", alias="descripcion")
    keywords: str = Field("", alias="palabras_clave")
    active: bool = Field(True, alias="activo")

    @field_validator("category", mode="before")
    @classmethod
    def coerce_unknown_category(cls, v: Any) -> Any:
        """Map categories this client does not know to OTRO."""
        if isinstance(v, ActivityCategory):
            return v
        if isinstance(v, str):
            v = v.upper()
            if v in ActivityCategory._value2member_map_:
                return v
        return ActivityCategory.OTRO


class Detection(DomainModel):
    """One timestamped activity found within an analyzed video."""

    id: int
    activity_type: ActivityType = Field(alias="tipo_actividad")
    start_offset_seconds: float = Field(ge=0.0, alias="timestamp_inicio")
    end_offset_seconds: float = Field(ge=0.0, alias="timestamp_fin")
    confidence: float = Field(ge=0.0, le=100.0, alias="confianza")
    detected_objects: frozenset[str] = Field(
        default_factory=frozenset, alias="objetos_detectados"
    )
    alert_generated: bool = Field(False, alias="aviso_generado")
    alert_id: Optional[int] = Field(None, alias="aviso_id")
    created_at: UTCDateTime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_seconds(self) -> float:
        return self.end_offset_seconds - self.start_offset_seconds

    @model_validator(mode="after")
    def check_invariants(self) -> "Detection":
        if self.end_offset_seconds < self.start_offset_seconds:
            raise ValueError("end offset precedes start offset")
        if self.alert_generated != (self.alert_id is not None):
            raise ValueError("alert_id must be set exactly when alert_generated is true")
        return self

    def with_alert(self, alert_id: int) -> "Detection":
        """Snapshot of this detection promoted to an alert."""
        return self.model_copy(update={"alert_generated": True, "alert_id": alert_id})
