"""Stored location record format."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pygeofire._constants import GEOHASH_PRECISION
from pygeofire.geo.geohash import encode_geohash
from pygeofire.geo.validation import Location, validate_geohash, validate_location
from pygeofire.models._base import GeoBaseModel, validate_model


class GeoFireRecord(GeoBaseModel):
    """A location as stored under its key in the backing store.

    Stored form::

        {".priority": "<geohash>", "g": "<geohash>", "l": [lat, lng]}

    The store orders children by ``g``; ``l`` is the authoritative location.

    Parameters
    ----------
    geohash : str or None
        Geohash the record is indexed under (``g``).  May be missing on
        records written by other tools.
    location : tuple of float
        ``(latitude, longitude)`` pair (``l``).
    """

    geohash: str | None = Field(default=None, alias="g")
    location: Location = Field(alias="l")

    @field_validator("geohash", mode="before")
    @classmethod
    def _check_geohash(cls, value: Any) -> str | None:
        if value is None:
            return None
        return validate_geohash(value)

    @field_validator("location", mode="before")
    @classmethod
    def _check_location(cls, value: Any) -> Location:
        return validate_location(value)

    @classmethod
    def from_location(cls, location: Location, precision: int = GEOHASH_PRECISION) -> GeoFireRecord:
        location = validate_location(location)
        return cls(g=encode_geohash(location, precision), l=location)

    @classmethod
    def decode(cls, value: Any) -> GeoFireRecord:
        """Parse a stored value; raises ``GeoFireValidationError`` when malformed."""
        return validate_model(cls, value)

    def to_value(self) -> dict[str, Any]:
        geohash = self.geohash if self.geohash is not None else encode_geohash(self.location)
        return {
            ".priority": geohash,
            "g": geohash,
            "l": [self.location[0], self.location[1]],
        }
