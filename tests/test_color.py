"""Tests for lumina.color."""

import pytest

from lumina.color import adjust_color, blend, is_color, parse_hex, to_hex
from lumina.errors import LuminaError, INVALID_PROPERTY_VALUE


class TestParsing:
    def test_short_form(self):
        assert list(parse_hex("#fff")) == [1.0, 1.0, 1.0]

    def test_hex_round_trip(self):
        assert to_hex(parse_hex("#ff8800")) == "#ff8800"

    def test_is_color(self):
        assert is_color("#12ab9f")
        assert is_color("abc")
        assert not is_color("#12345")
        assert not is_color(0xffffff)

    def test_invalid(self):
        with pytest.raises(LuminaError) as exc_info:
            parse_hex("teal")
        assert exc_info.value.code == INVALID_PROPERTY_VALUE


class TestBlend:
    def test_endpoints_return_inputs(self):
        assert blend("#FF0000", "#00ff00", 0) == "#FF0000"
        assert blend("#FF0000", "#00ff00", 1) == "#00ff00"

    def test_midpoint_is_linear_light(self):
        # 50% linear light encodes to ~0.735 in sRGB
        assert blend("#000000", "#ffffff", 0.5) == "#bcbcbc"

    def test_overshoot_clipped(self):
        assert blend("#000000", "#ffffff", 1.5) == "#ffffff"


class TestAdjust:
    def test_brighten(self):
        assert adjust_color("#101010", 16) == "#202020"

    def test_clamped(self):
        assert adjust_color("#ffffff", 10) == "#ffffff"
        assert adjust_color("#050505", -10) == "#000000"
