"""Tests for variantforge.naming — templates, hashing and MIME types."""

from __future__ import annotations

import hashlib

import pytest

from variantforge.errors import ConfigError
from variantforge.naming import (
    content_hash,
    content_type,
    extension,
    interpolate_name,
    output_name,
    resolve_template,
)

_ABC_MD5 = hashlib.md5(b"abc").hexdigest()

# ---------------------------------------------------------------------------
# resolve_template
# ---------------------------------------------------------------------------


class TestResolveTemplate:
    """First pass: option and metadata tokens."""

    def test_options_take_precedence(self) -> None:
        result = resolve_template(
            "[name]-[width]w.[ext]", {"width": 200}, {"width": 400}
        )
        assert result == "[name]-200w.[ext]"

    def test_falls_back_to_info(self) -> None:
        assert resolve_template("[format]", {}, {"format": "webp"}) == "webp"

    def test_unresolved_left_literal(self) -> None:
        assert resolve_template("[mystery].[ext]", {}, {}) == "[mystery].[ext]"

    def test_name_and_hash_pass_through(self) -> None:
        """[name] and [hash] are resolved later, even when an option matches."""
        result = resolve_template("[name].[hash]", {"name": "x", "hash": "y"}, {})
        assert result == "[name].[hash]"

    def test_falsy_option_falls_through(self) -> None:
        assert resolve_template("[inline]", {"inline": False}, {}) == "[inline]"

    def test_bool_rendered_lowercase(self) -> None:
        assert resolve_template("[inline]", {"inline": True}, {}) == "true"

    def test_every_token_replaced(self) -> None:
        result = resolve_template(
            "[density]x-[density]x", {"density": 2}, {}
        )
        assert result == "2x-2x"


# ---------------------------------------------------------------------------
# interpolate_name
# ---------------------------------------------------------------------------


class TestInterpolateName:
    """Second pass: file-level placeholders and content hashes."""

    def test_name_and_ext(self) -> None:
        assert interpolate_name("/src/img/photo.webp", "[name].[ext]") == "photo.webp"

    def test_path_relative_to_context(self) -> None:
        result = interpolate_name(
            "/src/img/photo.webp", "[path][name].[ext]", context="/src"
        )
        assert result == "img/photo.webp"

    def test_folder(self) -> None:
        result = interpolate_name(
            "/src/img/photo.webp", "[folder]/[name].[ext]", context="/src"
        )
        assert result == "img/photo.webp"

    def test_path_empty_at_context_root(self) -> None:
        result = interpolate_name("/src/photo.png", "[path][name].[ext]", context="/src")
        assert result == "photo.png"

    def test_parent_segments_neutralized(self) -> None:
        result = interpolate_name(
            "/src/b/photo.png", "[path][name].[ext]", context="/src/a"
        )
        assert result == "_/b/photo.png"

    def test_truncated_hash(self) -> None:
        result = interpolate_name(
            "/p/photo.webp", "[name].[hash:8].[ext]", content=b"abc"
        )
        assert result == f"photo.{_ABC_MD5[:8]}.webp"

    def test_contenthash_full(self) -> None:
        assert interpolate_name("/p/a.png", "[contenthash]", content=b"abc") == _ABC_MD5

    def test_hash_type_and_digest(self) -> None:
        result = interpolate_name("/p/a.png", "[sha256:hash:hex:6]", content=b"abc")
        assert result == hashlib.sha256(b"abc").hexdigest()[:6]

    def test_query_token_removed(self) -> None:
        assert interpolate_name("/p/a.png", "[name][query].[ext]") == "a.png"

    def test_unknown_hash_type(self) -> None:
        with pytest.raises(ConfigError, match="hash type"):
            interpolate_name("/p/a.png", "[nope99:hash]", content=b"abc")

    def test_unknown_digest(self) -> None:
        with pytest.raises(ConfigError, match="digest"):
            interpolate_name("/p/a.png", "[hash:octal]", content=b"abc")


class TestContentHash:
    """Digest encodings."""

    def test_base_n_digest_is_deterministic(self) -> None:
        first = content_hash(b"abc", "md5", "base62")
        assert first == content_hash(b"abc", "md5", "base62")
        assert first.isalnum()

    def test_max_length(self) -> None:
        assert len(content_hash(b"abc", max_length=4)) == 4


# ---------------------------------------------------------------------------
# output_name
# ---------------------------------------------------------------------------


class TestOutputName:
    """Combination name → global template → fallback."""

    _INFO = {"format": "jpeg", "width": 200, "height": 100}

    def test_combination_template(self) -> None:
        name = output_name(
            {"name": "[name]-[density]x.[ext]", "density": 2},
            self._INFO,
            resource_path="/p/photo.png",
            content=b"x",
        )
        assert name == "photo-2x.jpg"

    def test_default_template(self) -> None:
        name = output_name(
            {},
            self._INFO,
            resource_path="/p/photo.png",
            content=b"x",
            default_template="[name]-[width].[ext]",
        )
        assert name == "photo-200.jpg"

    def test_fallback_template(self) -> None:
        name = output_name({}, self._INFO, resource_path="/p/photo.png", content=b"x")
        assert name == "photo.jpg"

    def test_extension_follows_produced_format(self) -> None:
        name = output_name(
            {}, {"format": "webp"}, resource_path="/p/photo.jpeg", content=b"x"
        )
        assert name == "photo.webp"


# ---------------------------------------------------------------------------
# extension / content_type
# ---------------------------------------------------------------------------


class TestExtensionAndType:
    """Format → extension and name → MIME type."""

    @pytest.mark.parametrize(
        "fmt, ext",
        [("webp", ".webp"), ("jpeg", ".jpg"), ("png", ".png"), ("bmp", ".bmp")],
    )
    def test_extension(self, fmt: str, ext: str) -> None:
        assert extension(fmt) == ext

    @pytest.mark.parametrize(
        "name, mime",
        [
            ("a.webp", "image/webp"),
            ("a.jpg", "image/jpeg"),
            ("a.png", "image/png"),
            ("dir/a.avif", "image/avif"),
        ],
    )
    def test_content_type(self, name: str, mime: str) -> None:
        assert content_type(name) == mime

    def test_unknown_content_type(self) -> None:
        assert content_type("a.unknownext") is None
