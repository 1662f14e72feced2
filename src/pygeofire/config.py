"""Configuration for pygeofire."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pygeofire._constants import (
    CLEANUP_DELAY_S,
    CLEANUP_THRESHOLD,
    GEOHASH_PRECISION,
    MAX_GEOHASH_PRECISION,
    SWEEP_INTERVAL_S,
)
from pygeofire.exceptions import GeoFireConfigError


def _env_number(name: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise GeoFireConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class GeoQueryConfig:
    """Tuning knobs of the query engine.

    Parameters
    ----------
    geohash_precision : int
        Precision of the geohash each tracked location is filed under when
        checking whether some range subscription still covers it.
    cleanup_threshold : int
        When more than this many range subscriptions are tracked, a debounced
        cleanup of the inactive ones is scheduled.
    cleanup_delay : float
        Seconds between scheduling a debounced cleanup and running it.
    sweep_interval : float
        Seconds between background cleanup sweeps.  Inactive ranges are kept
        around until then because a query drifting near a range boundary is
        likely to need them again.
    """

    geohash_precision: int = GEOHASH_PRECISION
    cleanup_threshold: int = CLEANUP_THRESHOLD
    cleanup_delay: float = CLEANUP_DELAY_S
    sweep_interval: float = SWEEP_INTERVAL_S

    def __post_init__(self) -> None:
        if not 0 < self.geohash_precision <= MAX_GEOHASH_PRECISION:
            raise GeoFireConfigError(
                f"geohash_precision must be between 1 and {MAX_GEOHASH_PRECISION}, got {self.geohash_precision}"
            )
        if self.cleanup_threshold < 0:
            raise GeoFireConfigError("cleanup_threshold must not be negative")
        if self.cleanup_delay < 0:
            raise GeoFireConfigError("cleanup_delay must not be negative")
        if self.sweep_interval <= 0:
            raise GeoFireConfigError("sweep_interval must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> GeoQueryConfig:
        """Create configuration from ``GEOFIRE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        _ENV_CONFIG_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "GEOFIRE_GEOHASH_PRECISION": ("geohash_precision", int),
            "GEOFIRE_CLEANUP_THRESHOLD": ("cleanup_threshold", int),
            "GEOFIRE_CLEANUP_DELAY": ("cleanup_delay", float),
            "GEOFIRE_SWEEP_INTERVAL": ("sweep_interval", float),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, cast) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class FirebaseConfig:
    """Connection settings for a Firebase Realtime Database.

    Parameters
    ----------
    database_url : str
        Database root URL, e.g. ``https://my-app.firebaseio.com``.
    path : str
        Path under the root where locations are stored.
    auth_token : str or None
        ID token or database secret sent as the ``auth`` query parameter.
    request_timeout : float
        Timeout in seconds for reads, writes and for establishing a stream.
        Open streams themselves never time out.
    """

    database_url: str
    path: str = "geofire"
    auth_token: str | None = None
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.database_url.startswith(("http://", "https://")):
            raise GeoFireConfigError(f"database_url must be an http(s) URL, got {self.database_url!r}")
        if self.request_timeout <= 0:
            raise GeoFireConfigError("request_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> FirebaseConfig:
        """Create configuration from environment variables.

        Reads ``GEOFIRE_DATABASE_URL`` and the optional ``GEOFIRE_PATH``,
        ``GEOFIRE_AUTH_TOKEN`` and ``GEOFIRE_REQUEST_TIMEOUT``.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}
        _ENV_CONFIG_MAP = {
            "GEOFIRE_DATABASE_URL": "database_url",
            "GEOFIRE_PATH": "path",
            "GEOFIRE_AUTH_TOKEN": "auth_token",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("GEOFIRE_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_number("GEOFIRE_REQUEST_TIMEOUT", timeout_env, float)

        config_kwargs.update(overrides)
        if "database_url" not in config_kwargs:
            raise GeoFireConfigError("GEOFIRE_DATABASE_URL is not set")
        return cls(**config_kwargs)
