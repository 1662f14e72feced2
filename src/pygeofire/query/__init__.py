"""Live geo query engine."""

from pygeofire.query.dispatcher import CallbackRegistration, EventDispatcher, KeyCallback
from pygeofire.query.geoquery import GeoQuery, QueryState
from pygeofire.query.ranges import GeohashRange, RangeDiff, desired_ranges, diff_ranges
from pygeofire.query.subscriptions import RangeSubscription, SubscriptionManager
from pygeofire.query.tracker import LocationRecord, LocationTracker

__all__ = [
    "CallbackRegistration",
    "EventDispatcher",
    "GeoQuery",
    "GeohashRange",
    "KeyCallback",
    "LocationRecord",
    "LocationTracker",
    "QueryState",
    "RangeDiff",
    "RangeSubscription",
    "SubscriptionManager",
    "desired_ranges",
    "diff_ranges",
]
