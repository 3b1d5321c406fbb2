"""Tests for variantforge.emit — inline vs emitted delivery."""

from __future__ import annotations

import base64
from pathlib import Path

from variantforge.emit import build_asset, deliver
from variantforge.host import MemoryHost
from variantforge.models import EncodeInfo, LoaderConfig
from variantforge.serializer import CodeFragment, serialize

_INFO = EncodeInfo(format="webp", width=10, height=5, channels=4, size=3)


class TestDeliver:
    """deliver() returns a data URL or emits and returns code."""

    def test_inline_returns_data_url(self, memory_host: MemoryHost) -> None:
        url = deliver(
            b"abc",
            "photo.webp",
            "image/webp",
            inline=True,
            host=memory_host,
            public_path_var="__webpack_public_path__",
        )
        assert url == "data:image/webp;base64," + base64.b64encode(b"abc").decode()
        assert memory_host.files == {}

    def test_inline_unknown_type(self, memory_host: MemoryHost) -> None:
        url = deliver(
            b"abc",
            "photo.zzz",
            None,
            inline=True,
            host=memory_host,
            public_path_var="p",
        )
        assert isinstance(url, str)
        assert url.startswith("data:;base64,")

    def test_emitted_returns_code(self, memory_host: MemoryHost) -> None:
        url = deliver(
            b"abc",
            "photo.webp",
            "image/webp",
            inline=False,
            host=memory_host,
            public_path_var="__webpack_public_path__",
        )
        assert isinstance(url, CodeFragment)
        assert serialize(url) == '__webpack_public_path__ + "photo.webp"'
        assert memory_host.files == {"photo.webp": b"abc"}

    def test_emitted_name_is_escaped(self, memory_host: MemoryHost) -> None:
        url = deliver(
            b"x",
            'a"</script>.png',
            "image/png",
            inline=False,
            host=memory_host,
            public_path_var="base",
        )
        rendered = serialize(url)
        assert "</script>" not in rendered
        assert rendered == 'base + "a\\"\\u003C\\u002Fscript\\u003E.png"'


class TestBuildAsset:
    """build_asset() names, types and delivers one variant."""

    def test_emitted_asset(self, memory_host: MemoryHost) -> None:
        asset = build_asset(
            b"abc",
            _INFO,
            {"format": "webp", "density": 2, "name": "[name]-[density]x.[ext]"},
            "thumbnail",
            host=memory_host,
            config=LoaderConfig(),
        )
        assert asset.name == "photo-2x.webp"
        assert asset.type == "image/webp"
        assert asset.preset == "thumbnail"
        assert not asset.inline
        assert memory_host.files == {"photo-2x.webp": b"abc"}

    def test_inline_asset_emits_nothing(self, memory_host: MemoryHost) -> None:
        asset = build_asset(
            b"abc",
            _INFO,
            {"inline": True},
            "prefetch",
            host=memory_host,
            config=LoaderConfig(),
        )
        assert asset.inline
        assert asset.url.startswith("data:image/webp;base64,")
        assert memory_host.files == {}

    def test_global_template(self, memory_host: MemoryHost) -> None:
        asset = build_asset(
            b"abc",
            _INFO,
            {},
            None,
            host=memory_host,
            config=LoaderConfig(name="[name]-[width]w.[ext]"),
        )
        assert asset.name == "photo-10w.webp"

    def test_path_relative_to_root_context(self, memory_host: MemoryHost) -> None:
        asset = build_asset(
            b"abc",
            _INFO,
            {},
            None,
            host=memory_host,
            config=LoaderConfig(name="[path][name].[ext]"),
        )
        assert asset.name == "images/photo.webp"

    def test_config_context_wins(self, memory_host: MemoryHost, tmp_path: Path) -> None:
        asset = build_asset(
            b"abc",
            _INFO,
            {},
            None,
            host=memory_host,
            config=LoaderConfig(
                name="[path][name].[ext]", context=str(tmp_path / "images")
            ),
        )
        assert asset.name == "photo.webp"

    def test_record_layout(self, memory_host: MemoryHost) -> None:
        asset = build_asset(
            b"abc",
            _INFO,
            {"format": "webp", "width": 99},
            "p",
            host=memory_host,
            config=LoaderConfig(),
        )
        record = asset.to_record()
        assert list(record) == [
            "format",
            "width",
            "height",
            "channels",
            "size",
            "type",
            "preset",
            "name",
            "url",
        ]
        # Produced metadata overrides the requested option.
        assert record["width"] == 10
