"""Cartesian expansion of normalized preset options into combinations."""

from __future__ import annotations

import itertools
import math
from collections.abc import Mapping, Sequence
from typing import Any


def expand(options: Mapping[str, Sequence[Any]]) -> list[dict[str, Any]]:
    """Expand normalized options into every concrete combination.

    Enumeration follows odometer order: the first declared key changes
    slowest and the last key fastest.  An empty option set yields one
    empty combination, so an image with no preset still produces a
    single pass-through variant.

    Args:
        options: Mapping of option key to its ordered values.

    Returns:
        One dict per combination, each holding every key exactly once.
    """
    keys = list(options)
    return [
        dict(zip(keys, values))
        for values in itertools.product(*(options[key] for key in keys))
    ]


def count_combinations(options: Mapping[str, Sequence[Any]]) -> int:
    """Return how many combinations :func:`expand` would produce."""
    return math.prod(len(values) for values in options.values())
