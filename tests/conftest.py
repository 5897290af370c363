"""Shared fixtures for grid_detector tests."""

from pathlib import Path

import numpy as np
import pytest

from tests.synthetic import SyntheticPage, render_page, write_png


@pytest.fixture
def bordered_page() -> np.ndarray:
    return render_page(SyntheticPage())


@pytest.fixture
def gridded_page() -> np.ndarray:
    return render_page(SyntheticPage(grid_spacing=32, labels=True))


@pytest.fixture
def white_page() -> np.ndarray:
    return np.full((400, 400, 3), 255, dtype=np.uint8)


@pytest.fixture
def page_file(tmp_path: Path, gridded_page: np.ndarray) -> Path:
    return write_png(gridded_page, tmp_path / "page.png")
