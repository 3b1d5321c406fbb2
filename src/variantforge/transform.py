"""Build and apply the ordered transform sequence for one combination."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from variantforge.engine import ImageHandle
from variantforge.logging import get_logger
from variantforge.models import ImageMeta, TransformSpec

logger = get_logger("transform")


def _density_resize(
    density: float, meta: ImageMeta, declared: Sequence[Any]
) -> tuple[int, int]:
    """Scale the intrinsic size by ``density / max(declared densities)``."""
    intrinsic = max(d for d in declared if d)
    scale = density / intrinsic
    return round(meta.width * scale), round(meta.height * scale)


def build_transform_spec(
    options: Mapping[str, Any],
    meta: ImageMeta,
    base: Mapping[str, Sequence[Any]],
) -> TransformSpec:
    """Translate a combination into pipeline operations.

    Args:
        options: One concrete combination.
        meta: Intrinsic metadata of the source image.
        base: The preset's normalized, un-expanded options.  Density
            resizing is relative to the largest declared density.

    Returns:
        The transform spec for this combination.
    """
    spec: dict[str, Any] = {}

    if options.get("format"):
        spec["format"] = str(options["format"])
        if options.get("quality") is not None:
            spec["format_options"] = {"quality": options["quality"]}

    width, height = options.get("width"), options.get("height")
    if width or height:
        spec["resize"] = (
            round(width) if width else None,
            round(height) if height else None,
        )

    # Density wins over explicit sizing.
    if options.get("density"):
        spec["resize"] = _density_resize(
            options["density"], meta, base.get("density", [options["density"]])
        )

    # Mimic CSS background-size.
    mode = options.get("mode")
    if mode == "cover":
        spec["min"] = True
    elif mode == "contain":
        spec["max"] = True
    else:
        spec["crop"] = "center"

    if options.get("blur"):
        spec["blur"] = options["blur"]

    return TransformSpec(**spec)


def apply_transform(image: ImageHandle, spec: TransformSpec) -> ImageHandle:
    """Apply *spec* to a clone of *image* in the fixed operation order.

    The source handle is left untouched so sibling combinations can
    share it.
    """
    handle = image.clone()
    for op, args in spec.operations():
        logger.debug("apply %s%r", op, args)
        if op == "format":
            handle = handle.to_format(*args, **spec.format_options)
        else:
            handle = getattr(handle, op)(*args)
    return handle
