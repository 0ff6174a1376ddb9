"""Map engine constants and configuration defaults."""

# Great-circle distance
EARTH_RADIUS_KM = 6371.0

# Camera
DEFAULT_CENTER = (19.4326, -99.1332)  # Mexico City
DEFAULT_ZOOM = 12
MIN_ZOOM_LEVEL = 3
MAX_ZOOM_LEVEL = 18
SELECT_ZOOM_LEVEL = 15  # minimum zoom when flying to a selected marker

# Clustering
DEFAULT_CLUSTER_RADIUS_KM = 1.0

# Nearby lookups
DEFAULT_NEARBY_RADIUS_KM = 10.0

# Location acquisition
DEFAULT_ENABLE_HIGH_ACCURACY = True
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_MAXIMUM_AGE_MS = 60_000
LOCATION_STORAGE_KEY = "eventconnect_user_location"

# NMEA receivers
DEFAULT_BAUD_RATE = 9600
NMEA_HDOP_METERS = 5.0  # nominal UERE used to turn HDOP into metres
