"""Gap-tolerant run scanning and stroke thickness measurement."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from grid_detector import config

from .pixel_context import PixelContext, ScanDirection


@dataclass(frozen=True)
class DarkRun:
    """Dark run along one scan line: first index and length in pixels."""

    start: int
    length: int

    @property
    def end(self) -> int:
        """Exclusive end index."""
        return self.start + self.length


EMPTY_RUN = DarkRun(start=0, length=0)


def longest_dark_run(line: NDArray[np.bool_], max_gap: int) -> DarkRun:
    """
    Longest run of dark pixels in a 1D mask, bridging gaps of up to ``max_gap`` pixels.

    Bridged gap pixels count towards the length; a run always starts and ends
    on a dark pixel. Ties go to the earliest run.
    """
    idx = np.flatnonzero(line)
    if idx.size == 0:
        return EMPTY_RUN

    gaps = np.diff(idx) - 1
    breaks = np.flatnonzero(gaps > max_gap)
    starts = np.concatenate((idx[:1], idx[breaks + 1]))
    ends = np.concatenate((idx[breaks], idx[-1:]))
    lengths = ends - starts + 1

    best = int(np.argmax(lengths))
    return DarkRun(start=int(starts[best]), length=int(lengths[best]))


def find_longest_dark_run(ctx: PixelContext, position: int, direction: ScanDirection) -> DarkRun:
    if position < 0 or position >= ctx.extent(direction):
        return EMPTY_RUN
    return longest_dark_run(ctx.scan_line(position, direction), ctx.config.max_gap_pixels)


def _runs_match(candidate: DarkRun, reference: DarkRun, start_tolerance: float) -> bool:
    return (
        candidate.length >= reference.length * config.RUN_MATCH_FRACTION
        and abs(candidate.start - reference.start) < start_tolerance
    )


def measure_line_thickness(
    ctx: PixelContext,
    position: int,
    run: DarkRun,
    direction: ScanDirection,
) -> int:
    """
    Count parallel scan lines around ``position`` carrying a matching run.

    Walks outward on both sides, up to expected thickness + tolerance steps,
    and stops at the first neighbour whose run is shorter than 90% of ``run``
    or starts too far from it.
    """
    limit = ctx.extent(direction)
    max_delta = ctx.config.expected_border_thickness + ctx.config.thickness_tolerance
    start_tolerance = max(
        config.RUN_START_TOLERANCE_MIN_PX, run.length * config.RUN_START_TOLERANCE_FRACTION
    )

    thickness = 1
    for step in (-1, 1):
        for delta in range(1, max_delta + 1):
            check_pos = position + step * delta
            if check_pos < 0 or check_pos >= limit:
                break
            neighbour = find_longest_dark_run(ctx, check_pos, direction)
            if not _runs_match(neighbour, run, start_tolerance):
                break
            thickness += 1

    return thickness
