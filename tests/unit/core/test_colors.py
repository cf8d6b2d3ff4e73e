"""Tests for color conversion and palette matching."""

import pytest

from figcache.core.colors import (
    color_distance,
    contrast_ratio,
    hex_to_hsl,
    hex_to_rgb,
    hsl_to_string,
    match_daisyui_color,
    rgb_to_hex,
    rgb_to_string,
)


class TestConversions:
    """Tests for hex/rgb/hsl conversions."""

    def test_rgb_to_hex_scales_unit_channels(self):
        assert rgb_to_hex({"r": 87 / 255, "g": 13 / 255, "b": 248 / 255}) == "#570df8"

    def test_rgb_to_hex_clamps_out_of_range(self):
        assert rgb_to_hex({"r": 1.2, "g": -0.1, "b": 0}) == "#ff0000"

    def test_hex_to_rgb_accepts_missing_hash(self):
        assert hex_to_rgb("570DF8") == (87, 13, 248)

    def test_hex_to_rgb_malformed_is_black(self):
        assert hex_to_rgb("not-a-color") == (0, 0, 0)

    @pytest.mark.parametrize(
        "hex_value,expected",
        [
            ("#ffffff", (0, 0, 100)),
            ("#000000", (0, 0, 0)),
            ("#ff0000", (0, 100, 50)),
            ("#00ff00", (120, 100, 50)),
        ],
    )
    def test_hex_to_hsl(self, hex_value, expected):
        assert hex_to_hsl(hex_value) == expected

    def test_css_strings(self):
        assert rgb_to_string("#570df8") == "rgb(87, 13, 248)"
        assert hsl_to_string((259, 94, 51)) == "hsl(259, 94%, 51%)"


class TestPaletteMatching:
    """Tests for DaisyUI palette matching."""

    def test_exact_match(self):
        assert match_daisyui_color("#570DF8") == "primary"

    def test_near_match_within_threshold(self):
        assert match_daisyui_color("#580ef7") == "primary"

    def test_no_match_far_from_palette(self):
        assert match_daisyui_color("#7b5e00") is None

    def test_distance_is_symmetric(self):
        assert color_distance("#000000", "#ffffff") == pytest.approx(441.67, abs=0.01)
        assert color_distance("#123456", "#654321") == color_distance("#654321", "#123456")

    def test_contrast_ratio_black_white(self):
        assert contrast_ratio("#000000", "#ffffff") == pytest.approx(21.0)
        assert contrast_ratio("#ffffff", "#ffffff") == pytest.approx(1.0)
