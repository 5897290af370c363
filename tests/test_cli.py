"""Tests for the grid-detector command line."""

import json

import numpy as np
from click.testing import CliRunner

from grid_detector import cli
from grid_detector.cli import main
from grid_detector.pipeline import extract_grid_async
from tests.synthetic import write_png


def _invoke(*args):
    return CliRunner().invoke(main, [str(a) for a in args])


class TestSingleImage:
    def test_writes_json(self, tmp_path, page_file):
        out = tmp_path / "result.json"
        result = _invoke(page_file, "-o", out)
        assert result.exit_code == 0, result.output
        payload = json.loads(out.read_text())
        assert payload["bounds"] == {"x": 40, "y": 40, "width": 320, "height": 320}
        assert payload["used_fallback"] is False
        assert payload["image_size"] == {"width": 400, "height": 400}
        assert "trace" not in payload

    def test_crop_and_trace(self, tmp_path, page_file):
        out = tmp_path / "result.json"
        result = _invoke(page_file, "-o", out, "--crop", "--trace")
        assert result.exit_code == 0, result.output
        payload = json.loads(out.read_text())
        assert payload["trace"][-1]["stage"] == "result"
        assert (tmp_path / "page_grid.png").exists()

    def test_debug_overlay(self, tmp_path, page_file):
        debug_dir = tmp_path / "debug"
        result = _invoke(page_file, "-o", tmp_path / "r.json", "--debug-dir", debug_dir)
        assert result.exit_code == 0, result.output
        assert (debug_dir / "page_debug.png").exists()

    def test_config_file(self, tmp_path, page_file):
        cfg = tmp_path / "detect.json"
        cfg.write_text(json.dumps({"border_expansion": 5}))
        out = tmp_path / "result.json"
        result = _invoke(page_file, "-o", out, "--config", cfg)
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["bounds"]["x"] == 35

    def test_invalid_config_file(self, tmp_path, page_file):
        cfg = tmp_path / "detect.json"
        cfg.write_text(json.dumps({"no_such_option": 1}))
        result = _invoke(page_file, "-o", tmp_path / "r.json", "--config", cfg)
        assert result.exit_code == 1
        assert "Invalid config file" in result.output

    def test_unreadable_image(self, tmp_path):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not an image")
        result = _invoke(bad, "-o", tmp_path / "r.json")
        assert result.exit_code == 1
        assert "[input]" in result.output


class TestBatch:
    def test_output_dir(self, tmp_path, page_file, white_page):
        blank = write_png(white_page, tmp_path / "blank.png")
        out_dir = tmp_path / "results"
        result = _invoke(page_file, blank, "--output-dir", out_dir, "--max-concurrency", 2)
        assert result.exit_code == 0, result.output
        assert "2 success, 0 failed" in result.output
        assert json.loads((out_dir / "blank.json").read_text())["used_fallback"] is True
        assert json.loads((out_dir / "page.json").read_text())["used_fallback"] is False

    def test_output_file_rejected_for_batch(self, tmp_path, page_file, white_page):
        blank = write_png(white_page, tmp_path / "blank.png")
        result = _invoke(page_file, blank, "-o", tmp_path / "r.json")
        assert result.exit_code == 1

    def test_no_images(self):
        result = _invoke()
        assert result.exit_code == 1

    def test_missing_image_rejected_by_click(self, tmp_path):
        result = _invoke(tmp_path / "missing.png")
        assert result.exit_code == 2

    def test_bad_concurrency(self, page_file, tmp_path):
        result = _invoke(page_file, "-o", tmp_path / "r.json", "--max-concurrency", 0)
        assert result.exit_code == 1

    def test_thin_image_in_batch(self, tmp_path, page_file):
        thin = write_png(np.full((1, 50, 3), 255, dtype=np.uint8), tmp_path / "thin.png")
        out_dir = tmp_path / "results"
        result = _invoke(page_file, thin, "--output-dir", out_dir, "--crop")
        assert result.exit_code == 0, result.output
        payload = json.loads((out_dir / "thin.json").read_text())
        assert payload["bounds"] == {"x": 4, "y": 0, "width": 43, "height": 1}
        assert (out_dir / "thin_grid.png").exists()

    def test_failing_image_does_not_stop_batch(self, tmp_path, page_file, white_page, monkeypatch):
        blank = write_png(white_page, tmp_path / "blank.png")
        out_dir = tmp_path / "results"

        async def extract_or_raise(img_path, detection_config, recorder):
            if img_path.stem == "blank":
                raise ValueError("Cannot crop to empty bounds")
            return await extract_grid_async(img_path, detection_config, recorder)

        monkeypatch.setattr(cli, "extract_grid_async", extract_or_raise)
        result = _invoke(page_file, blank, "--output-dir", out_dir, "--max-concurrency", 1)
        assert result.exit_code == 1
        assert "[detect] Cannot crop to empty bounds" in result.output
        assert "1 success, 1 failed" in result.output
        assert (out_dir / "page.json").exists()
        assert not (out_dir / "blank.json").exists()
