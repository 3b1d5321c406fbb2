"""Preset normalization: raw option values to uniform lists of typed values.

A preset option may be declared three ways:

- a single value (``format: webp``),
- a list of values (``density: [1, 2, 3]``), which multiplies the
  number of generated variants,
- a callable evaluated against the source image metadata, returning
  either of the above.

Each raw value is classified into :class:`Literal`, :class:`Choices` or
:class:`Derived` and resolved once into a plain list.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from variantforge.errors import ConfigError
from variantforge.utils import normalize_property

# Derived values may return another callable; stop before it loops forever.
MAX_DERIVATION_DEPTH = 8


@dataclass(frozen=True)
class Literal:
    """A single concrete option value."""

    value: Any


@dataclass(frozen=True)
class Choices:
    """Several concrete option values, one variant each."""

    values: tuple[Any, ...]


@dataclass(frozen=True)
class Derived:
    """An option value computed from context (usually ``ImageMeta``)."""

    fn: Callable[..., Any]

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)


OptionValue = Union[Literal, Choices, Derived]


def classify(value: Any) -> OptionValue:
    """Wrap a raw declared value in its tagged variant."""
    if isinstance(value, (Literal, Choices, Derived)):
        return value
    if callable(value):
        return Derived(value)
    if isinstance(value, (list, tuple)):
        return Choices(tuple(value))
    return Literal(value)


def resolve_option(key: str, value: Any, *args: Any) -> list[Any]:
    """Resolve one option to a non-empty list of coerced values.

    Args:
        key: Option key; selects the coercion rule.
        value: Raw or tagged option value.
        *args: Context passed to derived values.

    Returns:
        Ordered list of concrete values.

    Raises:
        ConfigError: If the option resolves to no values, a value fails
            coercion, or derived values nest too deeply.
    """
    option = classify(value)
    depth = 0
    while isinstance(option, Derived):
        depth += 1
        if depth > MAX_DERIVATION_DEPTH:
            raise ConfigError(f"Option {key!r} nests derived values too deeply")
        option = classify(option(*args))

    if isinstance(option, Choices):
        if not option.values:
            raise ConfigError(f"Option {key!r} declares an empty list of values")
        return [normalize_property(key, v) for v in option.values]
    return [normalize_property(key, option.value)]


def normalize_preset(preset: Mapping[str, Any], *args: Any) -> dict[str, list[Any]]:
    """Normalize every option of *preset*, preserving key order.

    Args:
        preset: Raw preset declaration.
        *args: Context for derived values (the source ``ImageMeta``).

    Returns:
        Mapping of option key to its ordered list of values.
    """
    return {key: resolve_option(key, value, *args) for key, value in preset.items()}


def merge_preset(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge declaration layers left to right; later layers win."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged
