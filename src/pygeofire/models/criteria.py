"""Query criteria model."""

from __future__ import annotations

import math
from typing import Any

from pydantic import ConfigDict, field_validator, model_validator

from pygeofire.exceptions import GeoFireValidationError
from pygeofire.geo.validation import Location, validate_location
from pygeofire.models._base import GeoBaseModel, validate_model


class QueryCriteria(GeoBaseModel):
    """Center and/or radius of a geo query.

    Either field may be omitted for a partial update, but not both.
    ``radius`` is in kilometers and must be positive.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    center: Location | None = None
    radius: float | None = None

    @field_validator("center", mode="before")
    @classmethod
    def _check_center(cls, value: Any) -> Location | None:
        if value is None:
            return None
        return validate_location(value)

    @field_validator("radius", mode="before")
    @classmethod
    def _check_radius(cls, value: Any) -> float | None:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"radius must be a number, got {value!r}")
        if not math.isfinite(value):
            raise ValueError(f"radius must be finite, got {value!r}")
        if value <= 0:
            raise ValueError(f"radius must be greater than 0, got {value!r}")
        return float(value)

    @model_validator(mode="after")
    def _require_something(self) -> QueryCriteria:
        if self.center is None and self.radius is None:
            raise ValueError("radius and/or center must be specified")
        return self

    @classmethod
    def parse(cls, *, center: Any = None, radius: Any = None, require_both: bool = False) -> QueryCriteria:
        """Validate criteria supplied by a caller."""
        criteria = validate_model(cls, {"center": center, "radius": radius})
        if require_both and (criteria.center is None or criteria.radius is None):
            raise GeoFireValidationError("query criteria for a new query must contain both a center and a radius")
        return criteria
