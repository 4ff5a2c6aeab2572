"""Small helpers shared by the IIS clients."""

from __future__ import annotations

import random

_RANDOM = random.SystemRandom()


def fix_powershell_path(value: str) -> str:
    """Collapse doubled backslashes emitted by PowerShell and trim whitespace."""
    return value.replace("\\\\", "\\").strip()


def random_int() -> int:
    """Return a random non-negative 63-bit integer."""
    return _RANDOM.getrandbits(63)