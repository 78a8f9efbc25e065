"""Expiry checks shared by every token provider."""

from __future__ import annotations

import time


def now() -> int:
    """Return the current UTC epoch time in whole seconds."""

    return int(time.time())


def is_expired(exp: int) -> bool:
    """Return ``True`` once the wall clock is strictly past ``exp``.

    ``exp`` is epoch seconds. A token whose ``exp`` equals the current second
    is still valid.
    """

    return now() > exp


__all__ = ["is_expired", "now"]
