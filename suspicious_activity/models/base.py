"""Base model for decoded backend entities."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict

from suspicious_activity.utils import ensure_utc

# Timestamps are normalized to aware UTC on decode.
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class DomainModel(BaseModel):
    """Immutable entity decoded from a backend payload.

    Fields are declared with English names and aliased to the backend's wire
    names, so ``model_validate`` accepts either form. Instances are frozen;
    changes are expressed as new snapshots via ``model_copy``.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )
