"""Centralized constants for stitch-studio."""
#Default service endpoint (matches the local generation/stitch backend)
DEFAULT_API_URL="http://localhost:5000"
#API endpoints relative to the service base URL
class Endpoints:
    GENERATE_VIDEO="/api/generate-video"
    STITCH_VIDEOS="/api/stitch-videos"
#Timeouts in seconds
class Timeouts:
    POLL_INTERVAL=3.0
    HTTP_REQUEST=30.0
    STITCH_REQUEST=300.0
#Library record limits
class Limits:
    TITLE_MAX_CHARS=50
    MIN_MERGE_CLIPS=2
