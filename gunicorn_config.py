"""
Gunicorn configuration for production deployment

Run with: gunicorn -c gunicorn_config.py "app:create_app()"
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8100')}"

# The daily posting rule is enforced in the database, so any number of workers
# sees the same quota. Flask-Limiter's request throttle is per worker unless
# RATELIMIT_STORAGE_URI points at Redis.
workers = int(os.environ.get('GUNICORN_WORKERS', 2))
timeout = 30

# Addresses allowed to set X-Forwarded-* headers
forwarded_allow_ips = os.environ.get('FORWARDED_ALLOW_IPS', '127.0.0.1')
