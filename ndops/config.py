"""Environment-driven settings, read at call time."""

from __future__ import annotations

import os


def default_axis() -> int:
    # Engine default: reduce over the last dimension.
    raw = os.getenv("NDOPS_DEFAULT_AXIS", "-1")
    try:
        return int(raw)
    except ValueError:
        return -1


__all__ = ["default_axis"]
