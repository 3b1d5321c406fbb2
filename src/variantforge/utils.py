"""Shared utility functions for VariantForge.

Contains helpers used across multiple modules to avoid code duplication.
"""

from __future__ import annotations

import base64
import math
from typing import Any

from variantforge.errors import ConfigError

# Option keys whose values are always coerced to numbers.
NUMERIC_KEYS = frozenset({"density", "blur", "width", "height"})
# Numeric keys that must be strictly positive.
POSITIVE_KEYS = frozenset({"density"})


def bytes_to_base64(raw: bytes) -> str:
    """Encode raw bytes as an ASCII base64 string.

    Args:
        raw: Encoded image bytes.

    Returns:
        Base64-encoded string of the image data.
    """
    return base64.b64encode(raw).decode("ascii")


def bytes_to_data_url(raw: bytes, media_type: str | None) -> str:
    """Build a self-contained ``data:`` URL for encoded image bytes.

    Args:
        raw: Encoded image bytes.
        media_type: MIME type for the URL.  ``None`` (an unknown type)
            renders as an empty media type, which browsers treat as
            ``text/plain``.

    Returns:
        A data URL string: ``data:{media_type};base64,{encoded_data}``
    """
    return f"data:{media_type or ''};base64,{bytes_to_base64(raw)}"


def to_number(key: str, value: Any) -> int | float:
    """Coerce a preset option value to a number.

    Integral values come back as ``int`` so they interpolate into file
    names as ``2`` rather than ``2.0``.

    Args:
        key: Option key, used in the error message.
        value: Raw value (number, numeric string, or bool).

    Returns:
        The numeric value.

    Raises:
        ConfigError: If the value cannot be read as a finite number.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Option {key!r} expects a number, got {value!r}"
        ) from exc
    if not math.isfinite(number):
        raise ConfigError(f"Option {key!r} expects a finite number, got {value!r}")
    if number.is_integer():
        return int(number)
    return number


def normalize_property(key: str, value: Any) -> Any:
    """Apply the per-key coercion rule to a single option value.

    ``None`` is kept for numeric keys so ``height: null`` can mean "auto".

    Raises:
        ConfigError: If a numeric value fails coercion, or a density is
            not positive.
    """
    if key in NUMERIC_KEYS and value is not None:
        number = to_number(key, value)
        if key in POSITIVE_KEYS and number <= 0:
            raise ConfigError(f"Option {key!r} must be positive, got {value!r}")
        return number
    return value
