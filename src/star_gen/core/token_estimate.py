"""Rough token estimation for prompt logging."""

from __future__ import annotations

import math


def estimate_token_count(text: str) -> int:
    """Approximate tokens as one per four characters."""
    return math.ceil(len(text) / 4)
