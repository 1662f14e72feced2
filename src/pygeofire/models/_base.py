"""Base model shared by pygeofire's pydantic models.

Pydantic is the validation boundary for everything that enters the library
from callers or from the backing store.  :func:`validate_model` converts
pydantic's ``ValidationError`` into :class:`GeoFireValidationError` so callers
only ever see the library's own exception hierarchy.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from pygeofire.exceptions import GeoFireValidationError

TModel = TypeVar("TModel", bound="GeoBaseModel")


def _format_errors(exc: ValidationError) -> str:
    messages: list[str] = []
    for error in exc.errors():
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


class GeoBaseModel(BaseModel):
    """Frozen base model; unknown fields are ignored unless a subclass forbids them."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


def validate_model(model_cls: type[TModel], data: Any) -> TModel:
    """Validate *data* into *model_cls*, raising :class:`GeoFireValidationError`."""
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise GeoFireValidationError(f"invalid {model_cls.__name__}: {_format_errors(exc)}") from exc
