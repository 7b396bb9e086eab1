"""
Application context.

Holds the runtime configuration that components need at construction
time. Built once from Django settings and passed explicitly to the token
issuer so nothing reads secrets from ambient globals.
"""
import re
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

from django.conf import settings


DEFAULT_TOKEN_LIFETIME = timedelta(days=7)

_DURATION_RE = re.compile(r'^\s*(?P<amount>\d+)\s*(?P<unit>[smhdw]?)\s*$', re.IGNORECASE)
_UNIT_SECONDS = {
    '': 1,
    's': 1,
    'm': 60,
    'h': 60 * 60,
    'd': 24 * 60 * 60,
    'w': 7 * 24 * 60 * 60,
}


def parse_lifetime(value) -> timedelta:
    """
    Parse a token lifetime such as "7d", "12h", "30m", "45s" or a bare
    number of seconds.

    Raises ValueError for anything else, or for a non-positive lifetime.
    """
    if isinstance(value, timedelta):
        lifetime = value
    elif isinstance(value, int) and not isinstance(value, bool):
        lifetime = timedelta(seconds=value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError(f"Invalid token lifetime: {value!r}")
        seconds = int(match.group('amount')) * _UNIT_SECONDS[match.group('unit').lower()]
        lifetime = timedelta(seconds=seconds)

    if lifetime <= timedelta(0):
        raise ValueError(f"Token lifetime must be positive: {value!r}")
    return lifetime


@dataclass(frozen=True)
class AppContext:
    jwt_secret: str
    jwt_algorithm: str = 'HS256'
    token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME

    @classmethod
    def from_settings(cls) -> 'AppContext':
        return cls(
            jwt_secret=getattr(settings, 'JWT_SECRET', settings.SECRET_KEY),
            jwt_algorithm=getattr(settings, 'JWT_ALGORITHM', 'HS256'),
            token_lifetime=parse_lifetime(getattr(settings, 'JWT_EXPIRES_IN', DEFAULT_TOKEN_LIFETIME)),
        )


@lru_cache
def get_app_context() -> AppContext:
    return AppContext.from_settings()
