"""Tests for internal grid-line detection and spacing analysis."""

import pytest

from grid_detector.detection.grid_lines import (
    analyze_grid_line_spacing,
    find_internal_grid_lines,
    grid_line_confidence,
)
from grid_detector.models import GridBounds, merge_config
from tests.synthetic import make_context

BOUNDS = GridBounds(x=40, y=40, width=320, height=320)
EXPECTED_LINES = [72, 104, 136, 168, 200, 232, 264, 296, 328]


class TestAnalyzeGridLineSpacing:
    """Tests for analyze_grid_line_spacing."""

    def test_regular(self):
        result = analyze_grid_line_spacing([10, 20, 30, 40], 0.1)
        assert result.is_regular
        assert result.consistency == 1.0

    def test_within_tolerance(self):
        result = analyze_grid_line_spacing([10, 20, 31, 41], 0.1)
        assert result.consistency == 1.0

    def test_one_outlier(self):
        result = analyze_grid_line_spacing([10, 20, 30, 70], 0.1)
        assert result.consistency == pytest.approx(2 / 3)
        assert not result.is_regular

    def test_upper_median_for_even_count(self):
        # spacings 10, 20, 20, 10: the upper median is 20
        result = analyze_grid_line_spacing([0, 10, 30, 50, 60], 0.1)
        assert result.consistency == pytest.approx(0.5)
        assert not result.is_regular

    def test_too_few_lines(self):
        result = analyze_grid_line_spacing([10, 20], 0.1)
        assert not result.is_regular
        assert result.consistency == 0.0


class TestFindInternalGridLines:
    """Tests for find_internal_grid_lines."""

    def test_gridded_page(self, gridded_page):
        ctx = make_context(gridded_page)
        assert find_internal_grid_lines(ctx, BOUNDS, "horizontal") == EXPECTED_LINES
        assert find_internal_grid_lines(ctx, BOUNDS, "vertical") == EXPECTED_LINES

    def test_border_rows_excluded(self, bordered_page):
        ctx = make_context(bordered_page)
        assert find_internal_grid_lines(ctx, BOUNDS, "horizontal") == []

    def test_adjacent_detections_merged(self, bordered_page):
        bordered_page[100:103, 40:361] = 0
        bordered_page[150, 40:361] = 0
        bordered_page[152, 40:361] = 0
        ctx = make_context(bordered_page)
        assert find_internal_grid_lines(ctx, BOUNDS, "horizontal") == [100, 150]

    def test_partial_lines_ignored(self, bordered_page):
        bordered_page[100, 40:200] = 0  # too short
        bordered_page[150, 120:361] = 0  # starts too far in
        ctx = make_context(bordered_page)
        assert find_internal_grid_lines(ctx, BOUNDS, "horizontal") == []


class TestGridLineConfidence:
    """Tests for grid_line_confidence."""

    def test_regular_grid(self, gridded_page):
        report = grid_line_confidence(make_context(gridded_page), BOUNDS)
        assert report.confidence == 1.0
        assert report.horizontal_spacing.is_regular
        assert report.vertical_spacing.is_regular

    def test_verification_disabled(self, gridded_page):
        cfg = merge_config({"grid_line_verification": {"enabled": False}})
        report = grid_line_confidence(make_context(gridded_page, cfg), BOUNDS)
        assert report.confidence == 1.0
        assert report.horizontal == ()

    def test_too_few_lines_is_neutral(self, bordered_page):
        bordered_page[100, 40:361] = 0
        report = grid_line_confidence(make_context(bordered_page), BOUNDS)
        assert report.horizontal == (100,)
        assert report.confidence == 1.0

    def test_one_regular_axis_gets_boost(self, bordered_page):
        for y in (100, 150, 200, 250):
            bordered_page[y, 40:361] = 0
        report = grid_line_confidence(make_context(bordered_page), BOUNDS)
        assert report.confidence == pytest.approx(0.5 + 0.2)

    def test_lines_without_pattern(self, bordered_page):
        bordered_page[100, 40:361] = 0
        bordered_page[150, 40:361] = 0
        report = grid_line_confidence(make_context(bordered_page), BOUNDS)
        assert report.confidence == 0.0
