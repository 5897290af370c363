"""Tests for pixel sources, image decoding and the dark-pixel context."""

import cv2
import numpy as np
import pytest

from grid_detector.detection import PixelContext, detect_grid_bounds
from grid_detector.detection.pixel_context import build_dark_mask
from grid_detector.models import DetectionConfig, ProcessingError, ProcessingStage
from grid_detector.pixel_source import (
    ArrayPixelSource,
    InvalidImageError,
    PixelSource,
    RawBufferPixelSource,
    as_pixel_source,
    decode_pixel_source,
    load_pixel_source,
)
from grid_detector.utils import cv_utils
from tests.synthetic import SyntheticPage, make_context, render_page, write_png


class TestArrayPixelSource:
    def test_rgb(self, bordered_page):
        source = ArrayPixelSource(bordered_page)
        assert isinstance(source, PixelSource)
        assert (source.width, source.height) == (400, 400)
        assert source.pixels().shape == (400, 400, 3)

    def test_read_only_view(self, bordered_page):
        pixels = ArrayPixelSource(bordered_page).pixels()
        with pytest.raises(ValueError):
            pixels[0, 0, 0] = 1

    def test_grayscale_expanded(self):
        source = ArrayPixelSource(np.zeros((20, 30), dtype=np.uint8))
        assert source.pixels().shape == (20, 30, 3)

    def test_single_channel_treated_as_grayscale(self):
        gray = np.full((20, 30), 7, dtype=np.uint8)
        source = ArrayPixelSource(gray[:, :, np.newaxis])
        assert source.pixels().shape == (20, 30, 3)
        assert np.array_equal(source.pixels(), ArrayPixelSource(gray).pixels())

    def test_other_dtype_clipped(self):
        source = ArrayPixelSource(np.full((2, 2, 3), 300.0))
        assert source.pixels().dtype == np.uint8
        assert source.pixels().max() == 255

    @pytest.mark.parametrize(
        "shape",
        [(0, 10, 3), (10, 0, 3), (10, 10, 2), (10, 10, 3, 1)],
    )
    def test_invalid_shapes(self, shape):
        with pytest.raises(InvalidImageError):
            ArrayPixelSource(np.zeros(shape, dtype=np.uint8))

    def test_as_pixel_source_passthrough(self, bordered_page):
        source = ArrayPixelSource(bordered_page)
        assert as_pixel_source(source) is source
        assert isinstance(as_pixel_source(bordered_page), ArrayPixelSource)


class TestRawBufferPixelSource:
    def test_rgba_buffer(self):
        page = render_page(SyntheticPage(channels=4))
        source = RawBufferPixelSource(page.tobytes(), 400, 400)
        assert source.pixels().shape == (400, 400, 4)
        assert detect_grid_bounds(source) == detect_grid_bounds(page)

    def test_rgb_buffer(self, bordered_page):
        source = RawBufferPixelSource(bytearray(bordered_page.tobytes()), 400, 400, channels=3)
        assert np.array_equal(source.pixels(), bordered_page)

    def test_zero_size(self):
        with pytest.raises(InvalidImageError):
            RawBufferPixelSource(b"", 0, 10)

    def test_too_few_channels(self):
        with pytest.raises(InvalidImageError):
            RawBufferPixelSource(bytes(200), 10, 10, channels=2)

    def test_short_buffer(self):
        with pytest.raises(InvalidImageError):
            RawBufferPixelSource(bytes(10), 10, 10)


class TestDecoding:
    def test_load_png(self, tmp_path, bordered_page):
        path = write_png(bordered_page, tmp_path / "page.png")
        source = load_pixel_source(path)
        assert not isinstance(source, ProcessingError)
        assert np.array_equal(source.pixels(), bordered_page)

    def test_load_missing_file(self, tmp_path):
        result = load_pixel_source(tmp_path / "missing.png")
        assert isinstance(result, ProcessingError)
        assert result.error_type == "file_not_found"
        assert result.stage == ProcessingStage.INPUT

    def test_load_corrupted_file(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        result = load_pixel_source(path)
        assert isinstance(result, ProcessingError)
        assert result.error_type == "imread_failed"

    def test_decode_png_bytes(self):
        page = np.zeros((10, 20, 3), dtype=np.uint8)
        page[:, :, 0] = 200  # red in RGB order
        encoded = cv_utils.encode_png(page)
        source = decode_pixel_source(encoded)
        assert not isinstance(source, ProcessingError)
        assert np.array_equal(source.pixels(), page)

    def test_decode_keeps_alpha(self):
        page = np.full((10, 20, 4), 255, dtype=np.uint8)
        page[:, :, 3] = 0
        source = decode_pixel_source(cv_utils.encode_png(page))
        assert source.pixels().shape == (10, 20, 4)
        assert source.pixels()[0, 0, 3] == 0

    def test_decode_grayscale(self):
        ok, buf = cv2.imencode(".png", np.zeros((10, 20), dtype=np.uint8))
        assert ok
        source = decode_pixel_source(buf.tobytes())
        assert source.pixels().shape == (10, 20, 3)

    @pytest.mark.parametrize(
        "data, error_type",
        [(b"", "empty_buffer"), (b"garbage bytes", "imdecode_failed")],
    )
    def test_decode_errors(self, data, error_type):
        result = decode_pixel_source(data)
        assert isinstance(result, ProcessingError)
        assert result.error_type == error_type

    def test_save_image_round_trip(self, tmp_path):
        page = np.zeros((10, 20, 3), dtype=np.uint8)
        page[:, :, 2] = 90
        saved = cv_utils.save_image(page, tmp_path / "out" / "page.png")
        assert saved == tmp_path / "out" / "page.png"
        assert np.array_equal(cv_utils.load_image(saved), page)


class TestPixelContext:
    def test_dark_is_strictly_below_threshold(self):
        pixels = np.array([[[49, 49, 49], [50, 0, 0], [0, 0, 60], [0, 0, 0]]], dtype=np.uint8)
        assert build_dark_mask(pixels, 50).tolist() == [[True, False, False, True]]

    def test_alpha_ignored(self):
        pixels = np.array([[[0, 0, 0, 0], [255, 255, 255, 255]]], dtype=np.uint8)
        ctx = make_context(pixels)
        assert ctx.is_dark(0, 0)
        assert not ctx.is_dark(1, 0)

    def test_out_of_bounds_is_not_dark(self):
        ctx = make_context(np.zeros((5, 5, 3), dtype=np.uint8))
        assert ctx.is_dark(4, 4)
        assert not ctx.is_dark(-1, 0)
        assert not ctx.is_dark(0, 5)

    def test_threshold_from_config(self):
        pixels = np.full((2, 2, 3), 100, dtype=np.uint8)
        assert not make_context(pixels).is_dark(0, 0)
        assert make_context(pixels, DetectionConfig(dark_pixel_threshold=101)).is_dark(0, 0)

    def test_any_dark_window_clamped(self):
        pixels = np.full((10, 10, 3), 255, dtype=np.uint8)
        pixels[0, 0] = 0
        ctx = make_context(pixels)
        assert ctx.any_dark(-5, -5, 1, 1)
        assert not ctx.any_dark(2, 2, 20, 20)
        assert not ctx.any_dark(11, 11, 20, 20)

    def test_mask_read_only(self, bordered_page):
        ctx = make_context(bordered_page)
        with pytest.raises(ValueError):
            ctx.dark[0, 0] = True

    def test_mismatched_source_geometry(self):
        class LyingSource:
            width = 10
            height = 10

            def pixels(self):
                return np.zeros((5, 5, 3), dtype=np.uint8)

        with pytest.raises(InvalidImageError):
            PixelContext.from_source(LyingSource(), DetectionConfig())
