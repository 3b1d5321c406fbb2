"""Tests for variantforge.presets — preset normalization."""

from __future__ import annotations

import pytest

from variantforge.errors import ConfigError
from variantforge.models import ImageMeta
from variantforge.presets import (
    Choices,
    Derived,
    Literal,
    classify,
    merge_preset,
    normalize_preset,
    resolve_option,
)


@pytest.fixture()
def meta() -> ImageMeta:
    return ImageMeta(width=100, height=50, density=72.0, format="png")


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    """Raw values are wrapped in their tagged variant."""

    def test_scalar_is_literal(self) -> None:
        assert classify("webp") == Literal("webp")

    def test_list_is_choices(self) -> None:
        assert classify([1, 2]) == Choices((1, 2))

    def test_tuple_is_choices(self) -> None:
        assert classify(("a",)) == Choices(("a",))

    def test_callable_is_derived(self) -> None:
        option = classify(lambda m: 1)
        assert isinstance(option, Derived)

    def test_tagged_values_pass_through(self) -> None:
        tagged = Choices((1,))
        assert classify(tagged) is tagged


# ---------------------------------------------------------------------------
# normalize_preset
# ---------------------------------------------------------------------------


class TestNormalizePreset:
    """Every key maps to a non-empty list of coerced values."""

    def test_scalar_wrapped(self) -> None:
        assert normalize_preset({"format": "webp"}) == {"format": ["webp"]}

    def test_list_elements_coerced(self) -> None:
        result = normalize_preset({"density": ["1", "2.5", 3.0]})
        assert result == {"density": [1, 2.5, 3]}
        assert isinstance(result["density"][0], int)
        assert isinstance(result["density"][2], int)

    def test_numeric_keys_only(self) -> None:
        """width/height/blur/density are numbers; quality passes through."""
        result = normalize_preset(
            {"width": "200", "height": 100, "blur": "5", "quality": "60"}
        )
        assert result == {
            "width": [200],
            "height": [100],
            "blur": [5],
            "quality": ["60"],
        }

    def test_key_order_preserved(self) -> None:
        result = normalize_preset({"format": "png", "density": 1, "width": 5})
        assert list(result) == ["format", "density", "width"]

    def test_empty_preset(self) -> None:
        assert normalize_preset({}) == {}

    def test_none_dimension_kept(self) -> None:
        assert normalize_preset({"height": None}) == {"height": [None]}

    def test_callable_receives_context(self, meta: ImageMeta) -> None:
        result = normalize_preset({"width": lambda m: m.width // 2}, meta)
        assert result == {"width": [50]}

    def test_callable_returning_list(self, meta: ImageMeta) -> None:
        result = normalize_preset(
            {"width": lambda m: [m.width, m.width * 2]}, meta
        )
        assert result == {"width": [100, 200]}

    def test_callable_result_is_coerced(self, meta: ImageMeta) -> None:
        result = normalize_preset({"density": lambda m: "2"}, meta)
        assert result == {"density": [2]}

    def test_nested_derived(self, meta: ImageMeta) -> None:
        option = Derived(lambda m: (lambda m2: [1, 2]))
        assert normalize_preset({"density": option}, meta) == {"density": [1, 2]}

    def test_runaway_derivation_rejected(self) -> None:
        def loop(*args: object) -> object:
            return loop

        with pytest.raises(ConfigError, match="too deeply"):
            normalize_preset({"width": loop})

    def test_empty_list_rejected(self) -> None:
        with pytest.raises(ConfigError, match="empty list"):
            normalize_preset({"format": []})

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(ConfigError, match="'width'"):
            normalize_preset({"width": "wide"})

    def test_bool_density(self) -> None:
        assert resolve_option("density", True) == [1]


# ---------------------------------------------------------------------------
# merge_preset
# ---------------------------------------------------------------------------


class TestMergePreset:
    """Layers merge left to right."""

    def test_later_layers_win(self) -> None:
        merged = merge_preset({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert merged == {"a": 1, "b": 3, "c": 4}
        assert list(merged) == ["a", "b", "c"]

    def test_none_layers_ignored(self) -> None:
        assert merge_preset(None, {"a": 1}, None) == {"a": 1}

    def test_inputs_not_mutated(self) -> None:
        base = {"a": 1}
        merge_preset(base, {"a": 2})
        assert base == {"a": 1}
