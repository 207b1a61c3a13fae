from __future__ import annotations

import hashlib
from typing import Callable

LuckFn = Callable[[str], float]

_SCALE = float(1 << 64)


def sha256_luck(seed: str) -> float:
    """Map a seed string onto [0, 1) deterministically.

    Uses the first 8 bytes of the SHA-256 digest, so the result is stable across
    processes and Python versions (unlike `hash()`).
    """

    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / _SCALE
