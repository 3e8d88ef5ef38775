"""Row expiry derived from a session cookie's max-age."""

import math
from typing import Any

from config.settings import MAX_TTL


def resolve_ttl(max_age: Any, default_ttl: int) -> int:
    """
    Convert a cookie ``maxAge`` in milliseconds to a TTL in seconds.
    
    Rounds half up, like the cookie's own expiry arithmetic. Falls back
    to ``default_ttl`` when ``max_age`` is missing, not a number, or does
    not round to a positive number of seconds (so ``maxAge=0`` never
    writes an immediately expiring row). Longer lifetimes are capped at
    ``MAX_TTL``, the most Cassandra accepts.
    
    >>> resolve_ttl(10000, 86400)
    10
    >>> resolve_ttl(0, 86400)
    86400
    """
    # bool is an int subclass but never a duration
    if isinstance(max_age, bool) or not isinstance(max_age, (int, float)):
        return default_ttl
    
    seconds = max_age / 1000
    if not math.isfinite(seconds):
        return default_ttl
    
    ttl = math.floor(seconds + 0.5)
    if ttl <= 0:
        return default_ttl
    return int(min(ttl, MAX_TTL))
