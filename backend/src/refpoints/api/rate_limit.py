"""Rate limiting for the public endpoints.

Referral code lookups are the only unauthenticated way to guess
valid codes, so they get a tighter limit than the default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from refpoints.settings import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    storage_uri="memory://",
    enabled=settings.rate_limiting_active,
)

code_lookup_limit = settings.referral_code_lookup_limit
