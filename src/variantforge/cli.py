"""Command-line interface for VariantForge.

Provides commands for building the variants of an image, previewing the
combinations a query would produce, and validating a preset config.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from variantforge.combinations import count_combinations
from variantforge.config import load_config, local_query, split_query
from variantforge.engine import read_metadata
from variantforge.errors import VariantForgeError
from variantforge.host import DirectoryHost
from variantforge.loader import VariantLoader, parse_selector, resolve_presets
from variantforge.logging import setup_logging
from variantforge.models import ImageMeta
from variantforge.presets import normalize_preset

console = Console()


def _setup_logging(verbose: bool, json_logs: bool = False) -> None:
    """Configure logging based on verbose flag."""
    setup_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        verbose=verbose,
        json_logs=json_logs,
    )


def _fail(message: str, verbose: bool) -> None:
    console.print(f"[bold red]✗[/] {escape(message)}")
    if verbose:
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(package_name="variantforge")
def main() -> None:
    """VariantForge — build-time responsive image variants from presets."""
    pass


@main.command()
@click.argument(
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML file declaring the global options and preset table",
)
@click.option(
    "--query",
    "-q",
    default="",
    help='Resource query, e.g. "?preset=thumbnail&inline" (default: all presets)',
)
@click.option(
    "--out",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("dist"),
    show_default=True,
    help="Directory for emitted files and the generated module",
)
@click.option(
    "--module-name",
    help="File name of the generated module (default: <image>.variants.js)",
)
@click.option(
    "--max-concurrency",
    "-j",
    type=click.IntRange(min=0),
    help="Maximum variants transformed at once (0 = unlimited)",
)
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.option("--verbose", "-v", is_flag=True, help="Enable detailed logging")
def build(
    image_path: Path,
    config_path: Path,
    query: str,
    output_dir: Path,
    module_name: str | None,
    max_concurrency: int | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Generate every variant of IMAGE_PATH and write the generated module.

    Example:

        \b
        variantforge build assets/hero.jpg -c variants.yaml
        variantforge build assets/hero.jpg -c variants.yaml \\
            --query "?preset=prefetch" --out dist/
    """
    _setup_logging(verbose, json_logs)

    try:
        config = load_config(config_path)
        host = DirectoryHost(
            image_path,
            output_dir,
            resource_query=query,
            root_context=image_path.parent,
        )
        loader = VariantLoader(config, max_concurrency=max_concurrency)
        source = image_path.read_bytes()

        with console.status(f"[bold blue]Generating variants of {image_path}..."):
            module_source = asyncio.run(loader.run(source, host))

        output_dir.mkdir(parents=True, exist_ok=True)
        module_path = output_dir / (module_name or f"{image_path.stem}.variants.js")
        module_path.write_text(module_source + "\n", encoding="utf-8")

        table = Table(title=f"Variants of {image_path.name}")
        table.add_column("File")
        table.add_column("Size", justify="right")
        for path in host.emitted:
            relative = path.relative_to(output_dir.resolve())
            table.add_row(str(relative), str(path.stat().st_size))
        if host.emitted:
            console.print(table)
        console.print(
            f"[bold green]✓[/] Wrote [bold]{module_path}[/] "
            f"({len(host.emitted)} emitted file(s))"
        )

    except (VariantForgeError, FileNotFoundError) as e:
        _fail(f"Build failed: {e}", verbose)
    except KeyboardInterrupt:
        console.print("\n[bold yellow]⚠[/] Build interrupted by user")
        sys.exit(130)


@main.command()
@click.argument(
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--query", "-q", default="", help="Resource query to plan for")
@click.option(
    "--image",
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Source image, for presets whose values depend on its metadata",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable detailed logging")
def plan(
    config_path: Path,
    query: str,
    image_path: Path | None,
    verbose: bool,
) -> None:
    """Show the combinations a query would generate, without transforming.

    Example:

        \b
        variantforge plan variants.yaml
        variantforge plan variants.yaml --query "?presets[]=thumbnail"
    """
    _setup_logging(verbose)

    try:
        config = load_config(config_path)
        meta: ImageMeta | None = None
        if image_path is not None:
            meta = read_metadata(image_path.read_bytes())

        selector, extra = split_query(local_query(query, config))
        presets = resolve_presets(parse_selector(selector), extra, config.presets)

        table = Table(title="Variant plan")
        table.add_column("Preset")
        table.add_column("Options")
        table.add_column("Variants", justify="right")
        total = 0
        for label, declaration in presets:
            options = normalize_preset(declaration, meta)
            count = count_combinations(options)
            total += count
            rendered = ", ".join(f"{k}={v}" for k, v in options.items()) or "-"
            table.add_row(
                escape(label or "(pass-through)"), escape(rendered), str(count)
            )
        console.print(table)
        console.print(f"[bold]Total variants:[/] {total}")

    except (VariantForgeError, FileNotFoundError) as e:
        _fail(f"Planning failed: {e}", verbose)


@main.command()
@click.argument(
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--verbose", "-v", is_flag=True, help="Enable detailed logging")
def validate(config_path: Path, verbose: bool) -> None:
    """Validate a preset configuration without processing any image.

    Every preset must normalize cleanly.  Presets that declare
    ``density`` together with ``width``/``height`` are reported, since
    density-based sizing overrides the explicit box.
    """
    _setup_logging(verbose)

    try:
        config = load_config(config_path)
        warnings: list[str] = []
        for name, preset in config.presets.items():
            normalize_preset(preset, None)
            if "density" in preset and ("width" in preset or "height" in preset):
                warnings.append(
                    f"Preset {name!r} declares density with width/height; "
                    "density-based sizing wins"
                )

        console.print("[bold green]✓[/] Configuration is valid")
        console.print(f"  Presets: {len(config.presets)}")

        if warnings:
            console.print()
            console.print(f"[bold yellow]⚠[/] {len(warnings)} warning(s):")
            for warning in warnings:
                console.print(f"  • {escape(warning)}")

    except (VariantForgeError, FileNotFoundError) as e:
        _fail(f"Validation failed: {e}", verbose)


if __name__ == "__main__":
    main()
