"""
Request throttle for the application.

This is a coarse per-IP guard against request floods on every endpoint.
The one-comment-per-day rule is separate and lives in
services/rate_limiter.py, backed by the database.

In-memory storage resets when the process restarts. Set
RATELIMIT_STORAGE_URI to a Redis URL (e.g., redis://host:port) to share
counters between Gunicorn workers.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os

# Create limiter instance (will be initialized with app later)
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.environ.get("RATELIMIT_STORAGE_URI", "memory://"),
    strategy="fixed-window"
)
