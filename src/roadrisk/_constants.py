"""Internal constants shared across the library."""

GEOMETRY_URL = (
    "https://overpass-api.de/api/interpreter"
    "?data=[out:json];way(around:1000,41.8781,-87.6298)[highway];out%20geom;"
)
WEATHER_URL = (
    "https://api.open-meteo.com/v1/forecast?latitude=41.8781&longitude=-87.6298"
    "&current_weather=true&timezone=America%2FChicago"
)
VOLUME_URL = "https://data.cityofchicago.org/resource/u77m-8jgp.json?$where=total_passing_vehicle_volume>20000"

USER_AGENT = "roadrisk/1.0"

MAX_SEGMENTS = 100
MAX_GEOMETRY_POINTS = 200

# Feed intervals in seconds.
TRAFFIC_INTERVAL = 10.0
WEATHER_INTERVAL = 30.0
VOLUME_INTERVAL = 10.0

VOLUME_THRESHOLD = 30000.0
HIGH_RISK_THRESHOLD = 0.7
ACCIDENT_RATE_MAX = 0.05

# Simulated congestion is drawn from 0..CONGESTION_LEVELS-1.
CONGESTION_LEVELS = 10

LOG_CAPACITY = 256
LOG_LINE_WIDTH = 128
LOG_FLUSH_INTERVAL = 1.0

# WMO weather interpretation codes treated as adverse (rain and showers).
ADVERSE_WEATHER_CODES: frozenset[int] = frozenset({61, 63, 65, 66, 67, 80, 81, 82})
