"""Internal constants shared across the library."""

# Characters used in geohash encoding, in sort order.
BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
BITS_PER_CHAR = 5

#: Default geohash precision for stored records and range coverage checks.
GEOHASH_PRECISION = 10
#: Geohashes longer than this cannot be encoded.
MAX_GEOHASH_PRECISION = 22
MAXIMUM_BITS_PRECISION = MAX_GEOHASH_PRECISION * BITS_PER_CHAR

# ------------------------------------------------------------------
# Earth model
# ------------------------------------------------------------------

#: Mean radius used for great-circle distances, in kilometers.
EARTH_RADIUS_KM = 6371.0
#: Length of a meridian (pole to pole and back), in meters.
EARTH_MERIDIONAL_CIRCUMFERENCE_M = 40007860.0
METERS_PER_DEGREE_LATITUDE = 110574.0
#: WGS84 equatorial radius and eccentricity squared.
EARTH_EQUATORIAL_RADIUS_M = 6378137.0
EARTH_E2 = 0.00669447819799
EPSILON = 1e-12

# Sorts after every BASE32 character; closes an open-ended prefix range.
RANGE_END_SENTINEL = "~"

# ------------------------------------------------------------------
# Keys
# ------------------------------------------------------------------

MAX_KEY_LENGTH = 755
INVALID_KEY_CHARACTERS = frozenset(".#$][/")

# ------------------------------------------------------------------
# Query housekeeping
# ------------------------------------------------------------------

#: Tracked range count above which a debounced cleanup is scheduled.
CLEANUP_THRESHOLD = 25
#: Delay before a debounced cleanup runs, in seconds.
CLEANUP_DELAY_S = 0.01
#: Interval of the background cleanup sweep, in seconds.
SWEEP_INTERVAL_S = 10.0
