"""Shared fixtures for variantforge tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from image_factory import make_image_bytes

from variantforge.host import MemoryHost
from variantforge.models import ImageMeta


@pytest.fixture()
def square_png() -> bytes:
    """A 100×100 RGBA PNG recorded at 72 DPI."""
    return make_image_bytes(100, 100, dpi=(72, 72))


@pytest.fixture()
def wide_png() -> bytes:
    """A 100×50 RGBA PNG."""
    return make_image_bytes(100, 50)


@pytest.fixture()
def square_meta() -> ImageMeta:
    """Metadata matching ``square_png``."""
    return ImageMeta(width=100, height=100, density=72.0, format="png", mode="RGBA")


@pytest.fixture()
def memory_host(tmp_path: Path) -> MemoryHost:
    """A host for ``<tmp>/images/photo.png`` collecting emitted files."""
    return MemoryHost(tmp_path / "images" / "photo.png", root_context=tmp_path)
