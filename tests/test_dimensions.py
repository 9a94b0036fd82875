import math

import pytest

from atelier.services.dimensions import (
    area,
    aspect_ratio,
    format_dimensions,
    parse_dimensions,
    relative_scale,
)


def test_parse_reads_height_then_width():
    dims = parse_dimensions("24 x 36 inches")

    assert dims.height == 24
    assert dims.width == 36


@pytest.mark.parametrize(
    "text, expected",
    [
        ("24x36", (24.0, 36.0)),
        ("  10.5 X 8 cm", (10.5, 8.0)),
        ("7 x 7.25", (7.0, 7.25)),
    ],
)
def test_parse_accepts_spacing_case_and_decimals(text, expected):
    dims = parse_dimensions(text)

    assert (dims.height, dims.width) == expected


@pytest.mark.parametrize("text", [None, "", "large", "about 24 x 36", "24 by 36", "0 x 10", "10 x 0"])
def test_parse_rejects_unusable_text(text):
    assert parse_dimensions(text) is None


def test_aspect_ratio_is_width_over_height():
    assert aspect_ratio("20 x 10 inches") == 0.5
    assert aspect_ratio("16 x 20") == 1.25


@pytest.mark.parametrize("text", [None, "", "unknown", "0 x 12"])
def test_aspect_ratio_falls_back_to_three_by_four(text):
    assert aspect_ratio(text) == 0.75


def test_area():
    assert area("12 x 16 inches") == 192
    assert area("n/a") is None


def test_relative_scale_uses_square_root_of_area():
    assert math.isclose(relative_scale("10 x 10"), 1.0)
    assert math.isclose(relative_scale("16 x 9"), 1.2)


def test_relative_scale_is_clamped():
    assert relative_scale("1 x 1") == 0.5
    assert relative_scale("100 x 100") == 2.5


def test_relative_scale_defaults_to_ten_by_ten():
    assert relative_scale("no size given") == 1.0


@pytest.mark.parametrize("height, width", [(24, 36), (10.5, 8), (0.1, 12.75), (1e-05, 3)])
def test_formatted_dimensions_parse_back_exactly(height, width):
    text = format_dimensions(height, width)
    dims = parse_dimensions(text)

    assert text.endswith("inches")
    assert dims.height == height
    assert dims.width == width


def test_format_dimensions_drops_trailing_zero_and_custom_unit():
    assert format_dimensions(24.0, 36.0) == "24 x 36 inches"
    assert format_dimensions(30, 40, unit="cm") == "30 x 40 cm"
    assert format_dimensions(30, 40, unit="") == "30 x 40"


def test_portrait_canvas_aspect_ratio():
    assert aspect_ratio("24 x 36 inches") == 1.5
