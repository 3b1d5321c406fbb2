"""Loader orchestration: presets → combinations → transformed assets → module.

Pipeline for one source image:

1. Resolve the preset selector against the declared preset table.
2. Decode the source image metadata (off the event loop).
3. Normalize each selected preset and expand it into combinations.
4. Transform, name and deliver every combination concurrently.
5. Serialize the ordered asset records into the generated module.

The run is all-or-nothing: the first failing combination cancels the
rest and its error becomes the invocation's error.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from variantforge.combinations import expand
from variantforge.config import local_query, split_query
from variantforge.emit import build_asset
from variantforge.engine import ImageHandle, read_metadata
from variantforge.errors import PresetNotFoundError, PresetSelectorError
from variantforge.host import BuildHost
from variantforge.logging import get_logger
from variantforge.models import Asset, ImageMeta, LoaderConfig
from variantforge.presets import merge_preset, normalize_preset
from variantforge.serializer import render_module
from variantforge.transform import apply_transform, build_transform_spec

logger = get_logger("loader")


# ---------------------------------------------------------------------------
# Preset selectors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Single:
    """Select one registered preset by name."""

    name: str


@dataclass(frozen=True)
class Many:
    """Select several registered presets, processed in order."""

    names: tuple[str, ...]


@dataclass(frozen=True)
class Inline:
    """Ad hoc presets keyed by label.

    A label that names a registered preset layers its entry on top of
    the registered declaration; any other label is an anonymous preset.
    """

    entries: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


PresetSelector = Union[Single, Many, Inline]


def parse_selector(raw: Any) -> PresetSelector | None:
    """Turn a raw ``preset``/``presets`` value into a selector.

    Raises:
        PresetSelectorError: If *raw* is not a name, a list of names, or
            a mapping of label to preset options.
    """
    if raw is None or isinstance(raw, (Single, Many, Inline)):
        return raw
    if isinstance(raw, str):
        return Single(raw)
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(name, str) for name in raw):
            raise PresetSelectorError("Preset lists must contain only preset names")
        return Many(tuple(raw))
    if isinstance(raw, Mapping):
        for label, entry in raw.items():
            if not isinstance(entry, Mapping):
                raise PresetSelectorError(
                    f"Inline preset {label!r} must be a mapping, "
                    f"got {type(entry).__name__}"
                )
        return Inline(dict(raw))
    raise PresetSelectorError(
        "Preset selector must be a name, a list of names, or a mapping, "
        f"got {type(raw).__name__}"
    )


def _registered(
    name: str, table: Mapping[str, Mapping[str, Any]]
) -> Mapping[str, Any]:
    if name not in table:
        raise PresetNotFoundError(name)
    return table[name]


def resolve_presets(
    selector: PresetSelector | None,
    extra: Mapping[str, Any],
    table: Mapping[str, Mapping[str, Any]],
) -> list[tuple[str | None, dict[str, Any]]]:
    """Resolve a selector to ``(label, declaration)`` pairs in order.

    Invocation overrides (*extra*) are merged last into every
    declaration.  No selector yields one pass-through preset labelled
    ``None`` that holds only the overrides.

    Raises:
        PresetNotFoundError: If a selected name is not in *table*.
    """
    if selector is None:
        return [(None, dict(extra))]
    if isinstance(selector, Single):
        declared = _registered(selector.name, table)
        return [(selector.name, merge_preset(declared, extra))]
    if isinstance(selector, Many):
        return [
            (name, merge_preset(_registered(name, table), extra))
            for name in selector.names
        ]
    if isinstance(selector, Inline):
        return [
            (label, merge_preset(table.get(label), entry, extra))
            for label, entry in selector.entries.items()
        ]
    raise PresetSelectorError(f"Unknown preset selector: {selector!r}")


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariantJob:
    """One combination of one preset, ready to be produced."""

    preset: str | None
    options: dict[str, Any]
    base: dict[str, list[Any]]


def plan_jobs(
    presets: list[tuple[str | None, dict[str, Any]]],
    meta: ImageMeta | None,
) -> list[VariantJob]:
    """Normalize and expand every resolved preset, preserving order."""
    jobs: list[VariantJob] = []
    for label, declaration in presets:
        base = normalize_preset(declaration, meta)
        for options in expand(base):
            jobs.append(VariantJob(preset=label, options=options, base=base))
    return jobs


def produce_asset(
    image: ImageHandle,
    meta: ImageMeta,
    job: VariantJob,
    *,
    host: BuildHost,
    config: LoaderConfig,
) -> Asset:
    """Transform, encode, name and deliver one combination (blocking)."""
    spec = build_transform_spec(job.options, meta, job.base)
    content, info = apply_transform(image, spec).to_buffer()
    asset = build_asset(
        content, info, job.options, job.preset, host=host, config=config
    )
    logger.debug(
        "Produced %s (%dx%d %s)",
        asset.name,
        info.width,
        info.height,
        info.format,
        extra={
            "resource": host.resource_path,
            "preset": job.preset,
            "asset": asset.name,
        },
    )
    return asset


def _warn_duplicate_names(assets: list[Asset], resource: str) -> None:
    counts = Counter(asset.name for asset in assets if not asset.inline)
    for name, count in counts.items():
        if count > 1:
            logger.warning(
                "%d variants of %s share the output name %r; "
                "later emissions overwrite earlier ones",
                count,
                resource,
                name,
            )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class VariantLoader:
    """Generates image variants for source images under one configuration.

    Args:
        config: Global loader configuration (preset table, naming, ...).
        max_concurrency: Overrides ``config.max_concurrency`` when given.
            ``0`` means no limit.
    """

    def __init__(
        self, config: LoaderConfig, max_concurrency: int | None = None
    ) -> None:
        self.config = config
        self.max_concurrency = (
            config.max_concurrency if max_concurrency is None else max_concurrency
        )

    async def generate(
        self,
        source: bytes,
        host: BuildHost,
        selector: Any = None,
        extra: Mapping[str, Any] | None = None,
    ) -> list[Asset]:
        """Produce every asset for *source*, in declaration order.

        Args:
            source: Raw bytes of the source image.
            host: Build host receiving emitted files.
            selector: Raw or parsed preset selector; ``None`` for a single
                pass-through preset.
            extra: Invocation overrides merged into every preset.

        Returns:
            Assets ordered by preset selection order, then by combination.

        Raises:
            PresetSelectorError: If the selector has an unsupported type.
            PresetNotFoundError: If a selected preset is not declared.
            ConfigError: If an option fails normalization.
            TransformError: If any combination fails to transform.
        """
        presets = resolve_presets(
            parse_selector(selector), extra or {}, self.config.presets
        )

        meta = await asyncio.to_thread(read_metadata, source)
        image = await asyncio.to_thread(ImageHandle.from_bytes, source)
        jobs = plan_jobs(presets, meta)
        logger.info(
            "Generating %d variant(s) of %s from %d preset(s)",
            len(jobs),
            host.resource_path,
            len(presets),
        )

        semaphore: asyncio.Semaphore | None = None
        if self.max_concurrency > 0:
            semaphore = asyncio.Semaphore(self.max_concurrency)

        limiter = semaphore if semaphore is not None else contextlib.nullcontext()

        async def _run(job: VariantJob) -> Asset:
            async with limiter:
                return await asyncio.to_thread(
                    produce_asset, image, meta, job, host=host, config=self.config
                )

        tasks = [asyncio.create_task(_run(job)) for job in jobs]
        try:
            assets = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        result = list(assets)
        _warn_duplicate_names(result, host.resource_path)
        return result

    async def run(self, source: bytes, host: BuildHost) -> str:
        """Process one resource and return the generated module source.

        The local query comes from ``host.resource_query``; without one,
        every declared preset is selected.
        """
        host.cacheable()
        selector, extra = split_query(local_query(host.resource_query, self.config))
        assets = await self.generate(source, host, selector, extra)
        return render_module(
            [asset.to_record() for asset in assets], self.config.export_target
        )


async def run_loader(source: bytes, host: BuildHost, config: LoaderConfig) -> str:
    """Convenience wrapper: ``VariantLoader(config).run(source, host)``."""
    return await VariantLoader(config).run(source, host)


def load(source: bytes, host: BuildHost, config: LoaderConfig) -> str:
    """Synchronous entry point for build tools without an event loop."""
    return asyncio.run(run_loader(source, host, config))
