"""Tests for colour helpers."""

import pytest

from aso_forge.colors import (
    brand_gradients,
    contrast_color,
    hex_to_hsl,
    hex_to_rgb,
    hsl_to_hex,
    is_valid_hex_color,
    normalize_hex_color,
)


class TestHexValidation:
    """Tests for brand colour validation."""

    @pytest.mark.parametrize("value", ["#FF5733", "#a1b2c3", "#00ffcc"])
    def test_valid(self, value):
        assert is_valid_hex_color(value)

    @pytest.mark.parametrize(
        "value",
        ["#FFF", "#FF5733AA", "#000000", "FF5733", "#GG5733", "", None, 123, "#FF573"],
    )
    def test_invalid(self, value):
        assert not is_valid_hex_color(value)

    def test_normalize_falls_back(self):
        assert normalize_hex_color("#FFF", "#c0f425") == "#c0f425"
        assert normalize_hex_color(" #123456 ", "#c0f425") == "#123456"


class TestConversions:
    """Tests for RGB/HSL conversions."""

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#FF8000") == (255, 128, 0)
        assert hex_to_rgb("#fff") == (255, 255, 255)

    def test_hex_to_rgb_rejects_garbage(self):
        with pytest.raises(ValueError):
            hex_to_rgb("#12345")

    def test_hsl_round_trip_of_pure_red(self):
        h, s, l = hex_to_hsl("#ff0000")
        assert (round(h), round(s), round(l)) == (0, 100, 50)
        assert hsl_to_hex(h, s, l) == "#ff0000"

    def test_invalid_hsl_input(self):
        assert hex_to_hsl("nope") == (0.0, 0.0, 0.0)


class TestContrastColor:
    """Tests for text contrast selection."""

    def test_light_background(self):
        assert contrast_color("#ffffff") == "#000000"
        assert contrast_color("#c0f425") == "#000000"

    def test_dark_background(self):
        assert contrast_color("#161811") == "#ffffff"
        assert contrast_color("#1e3a8a") == "#ffffff"

    def test_missing_or_invalid(self):
        assert contrast_color(None) == "#ffffff"
        assert contrast_color("blue") == "#ffffff"


class TestBrandGradients:
    """Tests for derived background gradients."""

    def test_four_gradients_in_fixed_order(self):
        gradients = brand_gradients("#3366cc", "#ff9900")
        assert [g.label for g in gradients] == [
            "Primary Shift", "Primary→Accent", "Accent Energy", "Neutral Tint",
        ]
        assert gradients[1].start == "#3366cc"
        assert gradients[1].end == "#ff9900"

    def test_gradients_are_valid_colours(self):
        for gradient in brand_gradients("#3366cc", "#ff9900"):
            assert len(gradient.start) == 7 and gradient.start.startswith("#")
            assert len(gradient.end) == 7 and gradient.end.startswith("#")
            assert gradient.angle == 135.0
