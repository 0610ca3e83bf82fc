"""Random index sources used for candidate generation."""

from __future__ import annotations

import secrets
from typing import Protocol


class RandomSource(Protocol):
    """Draws uniform indices in ``[0, bound)``."""

    def next_index(self, bound: int) -> int:
        """Return a uniformly distributed index below ``bound``."""


class SystemRandomSource:
    """OS-backed random source."""

    def next_index(self, bound: int) -> int:
        if bound <= 0:
            raise ValueError("bound must be > 0")
        return secrets.randbelow(bound)
