"""pygeofire - Live geo queries over keyed locations in a replicated store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pygeofire")
except PackageNotFoundError:
    __version__ = "0+local"
from pygeofire.config import FirebaseConfig, GeoQueryConfig
from pygeofire.exceptions import (
    GeoFireCallbackError,
    GeoFireConfigError,
    GeoFireError,
    GeoFireInternalError,
    GeoFireQueryClosedError,
    GeoFireSubscriptionError,
    GeoFireTransportError,
    GeoFireValidationError,
)
from pygeofire.geo import Location, distance, encode_geohash
from pygeofire.geofire import GeoFire
from pygeofire.models import ChildEvent, ChildEventKind, GeoFireRecord, QueryEvent
from pygeofire.query import CallbackRegistration, GeohashRange, GeoQuery, QueryState
from pygeofire.store import FirebaseStore, GeoStore, InMemoryStore

__all__ = [
    "__version__",
    "CallbackRegistration",
    "ChildEvent",
    "ChildEventKind",
    "FirebaseConfig",
    "FirebaseStore",
    "GeoFire",
    "GeoFireCallbackError",
    "GeoFireConfigError",
    "GeoFireError",
    "GeoFireInternalError",
    "GeoFireQueryClosedError",
    "GeoFireRecord",
    "GeoFireSubscriptionError",
    "GeoFireTransportError",
    "GeoFireValidationError",
    "GeoQuery",
    "GeoQueryConfig",
    "GeoStore",
    "GeohashRange",
    "InMemoryStore",
    "Location",
    "QueryEvent",
    "QueryState",
    "distance",
    "encode_geohash",
]
