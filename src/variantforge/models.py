"""Pydantic data models for image metadata, transforms, assets, and config."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Fixed application order of transform operations.
OPERATION_ORDER: tuple[str, ...] = ("blur", "resize", "max", "min", "crop", "format")


class ImageMeta(BaseModel):
    """Intrinsic metadata of a decoded source image.

    Attributes:
        width: Pixel width.
        height: Pixel height.
        density: Horizontal resolution in DPI, when the file records one.
        format: Pillow format name in lower case (e.g. ``"png"``).
        mode: Pillow pixel mode (e.g. ``"RGBA"``).
    """

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    density: float | None = None
    format: str | None = None
    mode: str = "RGB"

    model_config = ConfigDict(frozen=True)


class EncodeInfo(BaseModel):
    """Metadata describing the bytes produced for one variant.

    Attributes:
        format: Output format (e.g. ``"webp"``, ``"jpeg"``).
        width: Final pixel width.
        height: Final pixel height.
        channels: Number of colour channels in the output.
        size: Encoded size in bytes.
    """

    format: str
    width: int
    height: int
    channels: int
    size: int

    model_config = ConfigDict(frozen=True)


class TransformSpec(BaseModel):
    """Pipeline-ready operations derived from one combination.

    Every field left at its default is an operation that will be skipped.

    Attributes:
        blur: Gaussian blur sigma.
        resize: Target ``(width, height)``; either side may be ``None``.
        max: Fit inside the target box, preserving aspect ratio.
        min: Cover the target box, preserving aspect ratio.
        crop: Gravity for cover-then-crop to the exact target box.
        format: Output format to convert to.
        format_options: Encoder options passed along with *format*.
    """

    blur: float | None = None
    resize: tuple[int | None, int | None] | None = None
    max: bool = False
    min: bool = False
    crop: str | None = None
    format: str | None = None
    format_options: dict[str, Any] = {}

    model_config = ConfigDict(frozen=True)

    def operations(self) -> list[tuple[str, tuple[Any, ...]]]:
        """Return ``(operation, args)`` pairs in application order."""
        ops: list[tuple[str, tuple[Any, ...]]] = []
        for key in OPERATION_ORDER:
            if key == "blur" and self.blur is not None:
                ops.append(("blur", (self.blur,)))
            elif key == "resize" and self.resize is not None:
                ops.append(("resize", self.resize))
            elif key == "max" and self.max:
                ops.append(("max", ()))
            elif key == "min" and self.min:
                ops.append(("min", ()))
            elif key == "crop" and self.crop is not None:
                ops.append(("crop", (self.crop,)))
            elif key == "format" and self.format is not None:
                ops.append(("format", (self.format,)))
        return ops


class Asset(BaseModel):
    """One produced image variant and how it is delivered.

    Attributes:
        options: The combination the variant was generated from.
        info: Metadata of the produced bytes.
        type: MIME type resolved from *name*.
        preset: Name of the preset, ``None`` for the pass-through preset.
        name: Final output file name.
        url: Inline ``data:`` URL, or a ``CodeFragment`` resolving the
            emitted file against the runtime public path.
    """

    options: dict[str, Any]
    info: EncodeInfo
    type: str | None
    preset: str | None
    name: str
    url: Any

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def inline(self) -> bool:
        return isinstance(self.url, str)

    def to_record(self) -> dict[str, Any]:
        """Flatten into the exported record shape.

        Later keys overwrite earlier ones but keep their first position.
        """
        record: dict[str, Any] = dict(self.options)
        record.update(self.info.model_dump())
        record["type"] = self.type
        record["preset"] = self.preset
        record["name"] = self.name
        record["url"] = self.url
        return record


class LoaderConfig(BaseModel):
    """Global loader configuration shared by every processed image.

    Attributes:
        name: Default output name template (e.g. ``"[name].[hash:8].[ext]"``).
        context: Directory that ``[path]`` is made relative to.  Defaults
            to the host's root context.
        presets: Named preset declarations.
        public_path_var: Runtime variable holding the public base path.
        export_target: Left-hand side of the generated export assignment.
        max_concurrency: Maximum combinations transformed at once (0 = unlimited).
    """

    name: str | None = None
    context: str | None = None
    presets: dict[str, dict[str, Any]] = {}
    public_path_var: str = "__webpack_public_path__"
    export_target: str = "module.exports"
    max_concurrency: int = Field(default=0, ge=0)

    @field_validator("public_path_var", "export_target")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be a non-empty expression")
        return v
