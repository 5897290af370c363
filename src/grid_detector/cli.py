"""Command line entry point: detect grid bounds for one or many page images."""

import asyncio
import itertools
import json
import logging
import sys
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import click
from pydantic import ValidationError

from grid_detector import config
from grid_detector.detection import TraceRecorder, write_debug_overlay
from grid_detector.models import (
    DetectionConfig,
    ProcessingError,
    ProcessingStage,
    load_config_file,
)
from grid_detector.pipeline import GridExtraction, extract_grid_async
from grid_detector.utils import cv_utils

logger = logging.getLogger(__name__)

ImageOutcome = tuple[Path, GridExtraction | ProcessingError, TraceRecorder]


@dataclass(frozen=True)
class OutputOptions:
    crop: bool
    debug_dir: Path | None
    include_trace: bool


async def _extract_one(img_path: Path, detection_config: DetectionConfig) -> ImageOutcome:
    recorder = TraceRecorder()
    try:
        result = await extract_grid_async(img_path, detection_config, recorder)
    except Exception as e:
        logger.debug("Extraction of %s raised", img_path, exc_info=True)
        result = ProcessingError(
            stage=ProcessingStage.DETECT,
            error_type=type(e).__name__,
            recoverable=False,
            message=str(e) or type(e).__name__,
        )
    return img_path, result, recorder


async def iter_extractions(
    images: tuple[Path, ...],
    detection_config: DetectionConfig,
    max_concurrency: int,
) -> AsyncIterator[ImageOutcome]:
    """Yield outcomes as they finish, keeping at most ``max_concurrency`` pages in flight."""
    queued = iter(images)
    running: set[asyncio.Task[ImageOutcome]] = set()

    def _top_up() -> None:
        for img_path in itertools.islice(queued, max_concurrency - len(running)):
            running.add(asyncio.create_task(_extract_one(img_path, detection_config)))

    _top_up()
    while running:
        finished, running = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
        for task in finished:
            yield task.result()
        _top_up()


def _json_payload(
    img_path: Path,
    extraction: GridExtraction,
    recorder: TraceRecorder,
    include_trace: bool,
) -> dict[str, Any]:
    width, height = extraction.source_size
    payload: dict[str, Any] = {
        "image": str(img_path),
        "image_size": {"width": width, "height": height},
        **extraction.detection.summary(),
    }
    if include_trace:
        payload["trace"] = recorder.to_json()
    return payload


def _warn_if_failed(result: Path | ProcessingError) -> None:
    if isinstance(result, ProcessingError):
        click.echo(f"  Warning: {result.message}", err=True)


def write_outputs(
    img_path: Path,
    extraction: GridExtraction,
    recorder: TraceRecorder,
    out_path: Path,
    options: OutputOptions,
) -> None:
    """JSON result, plus the optional crop next to it and the optional debug overlay."""
    payload = _json_payload(img_path, extraction, recorder, options.include_trace)
    out_path.write_text(json.dumps(payload, indent=2))

    if options.crop:
        crop_path = out_path.parent / f"{img_path.stem}{config.CROP_SUFFIX}.png"
        _warn_if_failed(cv_utils.save_image(extraction.image, crop_path))

    if options.debug_dir is not None:
        # Re-read the page: the extraction only keeps the cropped pixels
        source = cv_utils.load_image(img_path)
        if isinstance(source, ProcessingError):
            _warn_if_failed(source)
            return
        debug_path = options.debug_dir / f"{img_path.stem}{config.DEBUG_SUFFIX}.png"
        _warn_if_failed(write_debug_overlay(source, extraction.detection, debug_path))


def _configure_logging(verbosity: int) -> None:
    levels = {0: logging.WARNING, 1: logging.INFO}
    logging.basicConfig(
        level=levels.get(verbosity, logging.DEBUG),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.command()
@click.argument("images", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output JSON file (single image)")
@click.option("--output-dir", type=click.Path(path_type=Path), help="Output directory (batch mode)")
@click.option("--crop", is_flag=True, help="Also write the cropped grid as PNG")
@click.option(
    "--debug-dir",
    type=click.Path(path_type=Path),
    help="Write bounds overlay images to this directory",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with detection config overrides",
)
@click.option(
    "--max-concurrency",
    type=int,
    default=config.DEFAULT_MAX_CONCURRENCY,
    show_default=True,
    help="Max pages processed at once",
)
@click.option("--trace", "include_trace", is_flag=True, help="Include the detection trace in JSON")
@click.option("-v", "--verbose", count=True, help="Verbose output (-vv for debug logs)")
def main(
    images: tuple[Path, ...],
    output: Path | None,
    output_dir: Path | None,
    crop: bool,
    debug_dir: Path | None,
    config_path: Path | None,
    max_concurrency: int,
    include_trace: bool,
    verbose: int,
) -> None:
    """Detect the grid border rectangle in page images."""
    _configure_logging(verbose)

    if not images:
        _fail("No input images provided")
    batch = len(images) > 1 or output_dir is not None
    if batch and output:
        _fail("Use --output-dir for batch processing")
    if max_concurrency < 1:
        _fail("--max-concurrency must be >= 1")

    try:
        detection_config = load_config_file(config_path) if config_path else DetectionConfig()
    except (ValueError, ValidationError) as e:
        _fail(f"Invalid config file {config_path}: {e}")

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
    options = OutputOptions(crop=crop, debug_dir=debug_dir, include_trace=include_trace)

    def _out_path(img_path: Path) -> Path:
        if batch:
            return (output_dir or img_path.parent) / f"{img_path.stem}.json"
        return output or Path(f"{img_path.stem}.json")

    async def _run() -> tuple[int, int]:
        ok = failed = 0
        async for img_path, result, recorder in iter_extractions(
            images, detection_config, max_concurrency
        ):
            if isinstance(result, ProcessingError):
                failed += 1
                click.echo(f"Error processing {img_path}:", err=True)
                click.echo(f"  [{result.stage.value}] {result.message}", err=True)
                continue

            out_path = _out_path(img_path)
            write_outputs(img_path, result, recorder, out_path, options)
            ok += 1
            logger.info("Wrote %s", out_path)
            if verbose:
                b = result.bounds
                mode = "fallback" if result.detection.used_fallback else "detected"
                click.echo(f"{img_path}: ({b.x}, {b.y}) {b.width}x{b.height} [{mode}] -> {out_path}")
        return ok, failed

    ok, failed = asyncio.run(_run())

    if batch:
        click.echo(f"Processed {ok + failed} images: {ok} success, {failed} failed")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
