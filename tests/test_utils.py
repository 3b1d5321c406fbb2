"""Tests for variantforge.utils — shared utility functions."""

from __future__ import annotations

import base64

import pytest

from variantforge.errors import ConfigError
from variantforge.utils import (
    bytes_to_base64,
    bytes_to_data_url,
    normalize_property,
    to_number,
)

# ---------------------------------------------------------------------------
# Data URLs
# ---------------------------------------------------------------------------


class TestDataUrl:
    """Tests for bytes_to_base64() and bytes_to_data_url()."""

    def test_base64_round_trips(self) -> None:
        raw = bytes(range(256))
        assert base64.b64decode(bytes_to_base64(raw)) == raw

    def test_data_url(self) -> None:
        assert bytes_to_data_url(b"hi", "image/png") == "data:image/png;base64,aGk="

    def test_unknown_media_type(self) -> None:
        assert bytes_to_data_url(b"hi", None) == "data:;base64,aGk="


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------


class TestToNumber:
    """Tests for to_number()."""

    @pytest.mark.parametrize(
        "value, expected",
        [(2, 2), ("2", 2), (2.0, 2), ("1.5", 1.5), (0.5, 0.5), (True, 1)],
    )
    def test_coercion(self, value: object, expected: float) -> None:
        result = to_number("density", value)
        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize("value", ["wide", None, [1], "nan", "inf"])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(ConfigError, match="'width'"):
            to_number("width", value)


class TestNormalizeProperty:
    """Tests for normalize_property()."""

    def test_numeric_key_coerced(self) -> None:
        assert normalize_property("blur", "100") == 100

    def test_numeric_key_keeps_none(self) -> None:
        assert normalize_property("height", None) is None

    def test_other_keys_untouched(self) -> None:
        assert normalize_property("format", "webp") == "webp"
        assert normalize_property("quality", "80") == "80"

    @pytest.mark.parametrize("value", [0, -1, "-2.5"])
    def test_density_must_be_positive(self, value: object) -> None:
        with pytest.raises(ConfigError, match="must be positive"):
            normalize_property("density", value)

    def test_other_numeric_keys_allow_zero(self) -> None:
        assert normalize_property("blur", 0) == 0
