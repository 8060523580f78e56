"""Clock, expiry and sampling helpers."""

import math
import random
import time
from typing import Any


def current_timestamp() -> int:
    """Current epoch time in whole seconds, rounded up."""
    return math.ceil(time.time())


def get_expire_time(max_age: Any, default_ttl: int) -> int:
    """
    Compute the epoch second at which a session expires.

    Args:
        max_age: Cookie max age in milliseconds; None or a non-finite value
            uses the default
        default_ttl: Lifetime in seconds used when max_age is not a number

    Returns:
        Expiry as integer epoch seconds
    """
    if (
        isinstance(max_age, (int, float))
        and not isinstance(max_age, bool)
        and math.isfinite(max_age)
    ):
        ttl = max_age / 1000
    else:
        ttl = default_ttl
    return math.ceil(ttl + current_timestamp())


def random_int(low: int, high: int) -> int:
    """Uniform random integer in [low, high]."""
    return random.randint(low, high)
