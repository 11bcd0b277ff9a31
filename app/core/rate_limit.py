"""
Rate limiting for mutating block routes (slowapi, keyed by client address).
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

limiter = Limiter(key_func=get_remote_address)

BLOCK_MUTATION_LIMIT = f"{settings.rate_limit_per_minute}/minute"
