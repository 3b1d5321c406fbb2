"""VariantForge — build-time responsive image variants from declarative presets."""

from variantforge.combinations import count_combinations, expand
from variantforge.config import load_config, parse_query, split_query
from variantforge.emit import build_asset, deliver
from variantforge.engine import ImageHandle, read_metadata
from variantforge.errors import (
    ConfigError,
    PresetNotFoundError,
    PresetSelectorError,
    SerializationError,
    TransformError,
    VariantForgeError,
)
from variantforge.host import BuildHost, DirectoryHost, MemoryHost
from variantforge.loader import (
    Inline,
    Many,
    Single,
    VariantLoader,
    load,
    parse_selector,
    run_loader,
)
from variantforge.logging import get_logger, setup_logging
from variantforge.models import (
    Asset,
    EncodeInfo,
    ImageMeta,
    LoaderConfig,
    TransformSpec,
)
from variantforge.naming import interpolate_name, output_name, resolve_template
from variantforge.presets import Choices, Derived, Literal, normalize_preset
from variantforge.serializer import CodeFragment, render_module, serialize
from variantforge.transform import apply_transform, build_transform_spec

__all__ = [
    "Asset",
    "BuildHost",
    "Choices",
    "CodeFragment",
    "ConfigError",
    "Derived",
    "DirectoryHost",
    "EncodeInfo",
    "ImageHandle",
    "ImageMeta",
    "Inline",
    "Literal",
    "LoaderConfig",
    "Many",
    "MemoryHost",
    "PresetNotFoundError",
    "PresetSelectorError",
    "SerializationError",
    "Single",
    "TransformError",
    "TransformSpec",
    "VariantForgeError",
    "VariantLoader",
    "apply_transform",
    "build_asset",
    "build_transform_spec",
    "count_combinations",
    "deliver",
    "expand",
    "get_logger",
    "interpolate_name",
    "load",
    "load_config",
    "normalize_preset",
    "output_name",
    "parse_query",
    "parse_selector",
    "read_metadata",
    "render_module",
    "resolve_template",
    "run_loader",
    "serialize",
    "setup_logging",
    "split_query",
]
