"""Injection-safe rendering of asset records into generated module source.

Produced values end up inside a JavaScript module that bundlers may in
turn inline into an HTML ``<script>`` block.  Strings therefore escape
every character that could terminate the literal, the statement, or the
enclosing script element.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Any

from variantforge.errors import SerializationError

_UNSAFE_CHARS: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "<": "\\u003C",
    ">": "\\u003E",
    "/": "\\u002F",
    "\N{LINE SEPARATOR}": "\\u2028",
    "\N{PARAGRAPH SEPARATOR}": "\\u2029",
}
_ESCAPE_TABLE = str.maketrans(_UNSAFE_CHARS)


class CodeFragment:
    """A value rendered as raw code instead of as a quoted string.

    The fragment is rendered lazily, at serialization time, by calling
    *render*.  Only code built by this package should ever be wrapped;
    untrusted text must go through :func:`serialize` first.
    """

    __slots__ = ("_render",)

    def __init__(self, render: Callable[[], str]) -> None:
        self._render = render

    def render(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return f"CodeFragment({self.render()!r})"


def public_path_expression(variable: str, name: str) -> CodeFragment:
    """Build ``<variable> + "<name>"``, resolved against a runtime base path."""
    return CodeFragment(lambda: f"{variable} + {serialize(name)}")


def safe_string(text: str) -> str:
    """Escape every unsafe character in *text* for a double-quoted literal."""
    return text.translate(_ESCAPE_TABLE)


def _serialize_number(value: int | float) -> str:
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return "NaN"
        return "Infinity" if value > 0 else "-Infinity"
    return repr(value)


def serialize(source: Any) -> str:
    """Render *source* as a JavaScript expression.

    Mappings keep their own key order; lists and tuples keep element
    order.  :class:`CodeFragment` values are inserted verbatim.

    Args:
        source: ``None``, bool, int, float, str, list, tuple, mapping, or
            :class:`CodeFragment`, nested arbitrarily.

    Returns:
        The rendered expression text.

    Raises:
        SerializationError: If a value of any other type is encountered.
    """
    if isinstance(source, CodeFragment):
        return source.render()
    if source is None:
        return "null"
    # bool is checked before int: it is an int subclass.
    if isinstance(source, bool):
        return "true" if source else "false"
    if isinstance(source, (int, float)):
        return _serialize_number(source)
    if isinstance(source, str):
        return f'"{safe_string(source)}"'
    if isinstance(source, (list, tuple)):
        return "[" + ",".join(serialize(item) for item in source) + "]"
    if isinstance(source, Mapping):
        pairs = [
            f'"{safe_string(str(key))}": {serialize(value)}'
            for key, value in source.items()
        ]
        return "{" + ",".join(pairs) + "}"
    raise SerializationError(
        f"Cannot serialize value of type {type(source).__name__}"
    )


def render_module(records: Any, export_target: str = "module.exports") -> str:
    """Render the generated module body: a single export assignment."""
    return f"{export_target} = {serialize(records)};"
