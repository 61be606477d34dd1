"""Rate limiting configuration using slowapi.

Module-level Limiter shared by main.py and any router that wants a tighter
per-endpoint limit via ``@limiter.limit("N/period")``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from absence_tracker.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
