"""Pillow-backed transformation engine.

:class:`ImageHandle` exposes a small chainable API: ``blur``,
``resize``, ``max``, ``min``, ``crop``, ``to_format`` and
``to_buffer``.  ``resize`` only records a target box; the fit strategy
selected by ``max`` / ``min`` / ``crop`` is applied when the geometry is
materialized (before the next pixel operation, or at encode time).
"""

from __future__ import annotations

import io
from typing import Any

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from variantforge.errors import TransformError
from variantforge.models import EncodeInfo, ImageMeta

# Output format name → Pillow encoder name.
FORMATS: dict[str, str] = {
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "gif": "GIF",
    "tiff": "TIFF",
    "avif": "AVIF",
}

LOSSY_FORMATS = frozenset({"jpeg", "webp", "avif"})

# Source formats Pillow reads but that are written out as another format.
SOURCE_FORMATS: dict[str, str] = {
    "mpo": "jpeg",
}

FALLBACK_FORMAT = "png"

# Gravity → Pillow ``centering`` for ImageOps.fit.
GRAVITY: dict[str, tuple[float, float]] = {
    "center": (0.5, 0.5),
    "centre": (0.5, 0.5),
    "north": (0.5, 0.0),
    "northeast": (1.0, 0.0),
    "east": (1.0, 0.5),
    "southeast": (1.0, 1.0),
    "south": (0.5, 1.0),
    "southwest": (0.0, 1.0),
    "west": (0.0, 0.5),
    "northwest": (0.0, 0.0),
}

MIN_BLUR_SIGMA = 0.3
MAX_BLUR_SIGMA = 1000.0


def canonical_format(fmt: str) -> str:
    """Return the canonical lower-case format name (``jpg`` → ``jpeg``)."""
    key = str(fmt).lower()
    if key not in FORMATS:
        raise TransformError(
            f"Unsupported output format {fmt!r} "
            f"(expected one of: {', '.join(sorted(FORMATS))})"
        )
    return "jpeg" if key == "jpg" else key


def source_output_format(source_format: str | None) -> str:
    """Return the output format used when no format was requested.

    Multi-picture JPEGs (as written by many phone cameras) stay JPEG;
    any other source format without an encoder here falls back to PNG.
    """
    key = (source_format or "").lower()
    key = SOURCE_FORMATS.get(key, key)
    if key not in FORMATS:
        return FALLBACK_FORMAT
    return canonical_format(key)


def _quality(value: Any) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError) as exc:
        raise TransformError(f"Invalid quality: {value!r}") from exc


def _open(data: bytes) -> Image.Image:
    try:
        return Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, OSError) as exc:
        raise TransformError(f"Cannot decode source image: {exc}") from exc


def read_metadata(data: bytes) -> ImageMeta:
    """Decode only the header of *data* and return its intrinsic metadata.

    Raises:
        TransformError: If the bytes are not a readable image.
    """
    img = _open(data)
    dpi = img.info.get("dpi")
    density = float(dpi[0]) if dpi else None
    return ImageMeta(
        width=img.width,
        height=img.height,
        density=density,
        format=img.format.lower() if img.format else None,
        mode=img.mode,
    )


def _positive_dimension(value: Any, label: str) -> int | None:
    if value is None:
        return None
    try:
        dimension = int(round(float(value)))
    except (TypeError, ValueError) as exc:
        raise TransformError(f"Invalid {label}: {value!r}") from exc
    if dimension < 1:
        raise TransformError(f"Invalid {label}: {value!r} (must be >= 1)")
    return dimension


class ImageHandle:
    """A cloneable, chainable transform handle over a Pillow image."""

    def __init__(self, image: Image.Image, source_format: str | None = None) -> None:
        self._image = image
        self._source_format = source_format
        self._target: tuple[int | None, int | None] | None = None
        self._fit = "crop"
        self._gravity = "center"
        self._format: str | None = None
        self._format_options: dict[str, Any] = {}

    @classmethod
    def from_bytes(cls, data: bytes) -> ImageHandle:
        """Fully decode *data* into a new handle.

        Raises:
            TransformError: If the bytes cannot be decoded.
        """
        img = _open(data)
        source_format = img.format.lower() if img.format else None
        try:
            img.load()
        except OSError as exc:
            raise TransformError(f"Cannot decode source image: {exc}") from exc
        return cls(img, source_format)

    @property
    def size(self) -> tuple[int, int]:
        """Current pixel size, ignoring geometry that is still pending."""
        return self._image.size

    def clone(self) -> ImageHandle:
        """Return an independent copy, including pending settings."""
        other = ImageHandle(self._image.copy(), self._source_format)
        other._target = self._target
        other._fit = self._fit
        other._gravity = self._gravity
        other._format = self._format
        other._format_options = dict(self._format_options)
        return other

    def blur(self, sigma: float) -> ImageHandle:
        """Apply a Gaussian blur with standard deviation *sigma*."""
        try:
            value = float(sigma)
        except (TypeError, ValueError) as exc:
            raise TransformError(f"Invalid blur sigma: {sigma!r}") from exc
        if not MIN_BLUR_SIGMA <= value <= MAX_BLUR_SIGMA:
            raise TransformError(
                f"Invalid blur sigma: {sigma!r} "
                f"(expected {MIN_BLUR_SIGMA} to {MAX_BLUR_SIGMA})"
            )
        self._materialize()
        self._image = self._image.filter(ImageFilter.GaussianBlur(value))
        return self

    def resize(self, width: Any = None, height: Any = None) -> ImageHandle:
        """Set the target box; either side may be ``None`` for auto."""
        target = (
            _positive_dimension(width, "width"),
            _positive_dimension(height, "height"),
        )
        if target == (None, None):
            raise TransformError("resize needs a width or a height")
        self._target = target
        return self

    def max(self) -> ImageHandle:
        """Fit inside the target box, preserving aspect ratio."""
        self._fit = "max"
        return self

    def min(self) -> ImageHandle:
        """Cover the target box, preserving aspect ratio."""
        self._fit = "min"
        return self

    def crop(self, gravity: str = "center") -> ImageHandle:
        """Cover the target box, then crop the overflow towards *gravity*."""
        key = str(gravity).lower()
        if key not in GRAVITY:
            raise TransformError(f"Unknown crop gravity: {gravity!r}")
        self._fit = "crop"
        self._gravity = key
        return self

    def to_format(self, fmt: str, **options: Any) -> ImageHandle:
        """Select the output format and encoder options."""
        self._format = canonical_format(fmt)
        self._format_options = dict(options)
        return self

    def _target_size(self) -> tuple[int, int]:
        assert self._target is not None
        src_w, src_h = self._image.size
        width, height = self._target
        if width is None:
            return max(1, round(src_w * height / src_h)), height
        if height is None:
            return width, max(1, round(src_h * width / src_w))
        if self._fit == "max":
            scale = min(width / src_w, height / src_h)
        elif self._fit == "min":
            scale = max(width / src_w, height / src_h)
        else:
            return width, height
        return max(1, round(src_w * scale)), max(1, round(src_h * scale))

    def _materialize(self) -> None:
        """Apply pending geometry to the pixel data."""
        if self._target is None:
            return
        size = self._target_size()
        width, height = self._target
        if self._fit == "crop" and width is not None and height is not None:
            self._image = ImageOps.fit(
                self._image,
                size,
                method=Image.Resampling.LANCZOS,
                centering=GRAVITY[self._gravity],
            )
        elif size != self._image.size:
            self._image = self._image.resize(size, resample=Image.Resampling.LANCZOS)
        self._target = None

    def _prepare_mode(self, fmt: str) -> Image.Image:
        img = self._image
        if fmt == "jpeg" and img.mode not in ("RGB", "L", "CMYK"):
            if img.mode == "P":
                img = img.convert("RGBA")
            return img.convert("RGB")
        if fmt in ("webp", "avif") and img.mode not in ("RGB", "RGBA"):
            has_alpha = "A" in img.getbands() or "transparency" in img.info
            return img.convert("RGBA" if has_alpha else "RGB")
        return img

    def to_buffer(self) -> tuple[bytes, EncodeInfo]:
        """Encode the image, returning the bytes and their metadata.

        Raises:
            TransformError: If the encoder rejects the image or options.
        """
        self._materialize()
        fmt = self._format or source_output_format(self._source_format)
        img = self._prepare_mode(fmt)

        save_kwargs = dict(self._format_options)
        quality = save_kwargs.pop("quality", None)
        if quality is not None and fmt in LOSSY_FORMATS:
            save_kwargs["quality"] = _quality(quality)

        buf = io.BytesIO()
        try:
            img.save(buf, format=FORMATS[fmt], **save_kwargs)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise TransformError(f"Cannot encode image as {fmt}: {exc}") from exc
        data = buf.getvalue()

        info = EncodeInfo(
            format=fmt,
            width=img.width,
            height=img.height,
            channels=len(img.getbands()),
            size=len(data),
        )
        return data, info
