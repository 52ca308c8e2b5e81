# app/core/rate_limit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import AUTH_RATE_LIMIT, RATE_LIMIT_ENABLED

# Initialize limiter
limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

# Credential endpoints are the brute-force target
AUTH_LIMIT = AUTH_RATE_LIMIT
