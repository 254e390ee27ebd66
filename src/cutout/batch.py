"""Batch extraction of captures from many images.

Every (input file, capture) pair is an independent unit of work. The work is
planned up front as an ordered list of WorkItems, grouped per input file so
each image is decoded once, and the per-file results are folded into a single
BatchReport in input order. A failing pair never stops the batch.
"""

import logging
import time
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import groupby, product
from pathlib import Path

from PIL import Image

from .codec import ImageCodec, PillowCodec, output_path_for
from .coordinates import normalize
from .errors import DecodeError, EncodeError, OutOfBoundsError
from .extraction import check_bounds, extract
from .models import BatchReport, CaptureSpec, ExtractionResult, Origin, Timings
from .parsing import parse_origin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItem:
    """One (input file, capture) pair.

    ``file_index`` distinguishes repeated occurrences of the same path.
    """

    file_index: int
    input_path: Path
    spec: CaptureSpec


def plan_work(inputs: Sequence[Path], specs: Sequence[CaptureSpec]) -> list[WorkItem]:
    """Materialize the cartesian product of inputs and specs, in report order."""
    return [
        WorkItem(file_index=index, input_path=Path(path), spec=spec)
        for (index, path), spec in product(enumerate(inputs), specs)
    ]


def _group_by_file(items: Sequence[WorkItem]) -> Iterator[tuple[Path, list[WorkItem]]]:
    for _, group in groupby(items, key=lambda item: item.file_index):
        file_items = list(group)
        yield file_items[0].input_path, file_items


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def process_file(
    input_path: Path,
    items: Sequence[WorkItem],
    origin: Origin,
    codec: ImageCodec,
    dry_run: bool = False,
    verbose: bool = False,
    output_dir: Path | None = None,
) -> list[ExtractionResult]:
    """Decode one input and run all of its captures.

    A decode failure is reported as a single failed result covering every
    capture of the file.

    Args:
        input_path: Input image path
        items: Work items for this input, in capture order
        origin: Coordinate convention of the captures
        codec: Codec used to decode, encode and write
        dry_run: Only validate bounds; never encode or write
        verbose: Record decode and crop+encode timings
        output_dir: Directory for outputs (default: beside the input)

    Returns:
        Results for this input, in capture order
    """
    start = time.perf_counter()
    try:
        image = codec.decode(input_path)
    except DecodeError as e:
        logger.warning(f"Skipping {input_path}: {e}")
        return [ExtractionResult.failure(input_path, None, e.kind, str(e))]
    decode_ms = _elapsed_ms(start)
    logger.debug(f"Decoded {input_path} in {decode_ms:.1f} ms")

    results = []
    with image:
        for item in items:
            results.append(
                _process_capture(
                    image,
                    input_path,
                    item.spec,
                    origin,
                    codec,
                    dry_run=dry_run,
                    decode_ms=decode_ms if verbose else None,
                    output_dir=output_dir,
                )
            )
    return results


def _process_capture(
    image: Image.Image,
    input_path: Path,
    spec: CaptureSpec,
    origin: Origin,
    codec: ImageCodec,
    dry_run: bool,
    decode_ms: float | None,
    output_dir: Path | None,
) -> ExtractionResult:
    rect = normalize(spec, origin, image.height)
    image_size = image.size
    timings = Timings(decode_ms=decode_ms) if decode_ms is not None else None

    start = time.perf_counter()
    try:
        output_path = output_path_for(input_path, spec.name, output_dir)
        if dry_run:
            check_bounds(rect, image.width, image.height, spec.name)
        else:
            cropped = extract(image, rect, spec.name)
            data = codec.encode(cropped, output_path.suffix)
            if output_path.exists():
                logger.warning(f"Overwriting existing output {output_path}")
            codec.write(data, output_path)
    except (OutOfBoundsError, EncodeError) as e:
        return ExtractionResult.failure(
            input_path,
            spec.name,
            e.kind,
            str(e),
            rect=rect,
            image_size=image_size,
            timings=timings,
        )

    if timings is not None and not dry_run:
        timings.crop_encode_ms = _elapsed_ms(start)
    logger.debug(f"Capture '{spec.name}' of {input_path} at {rect.to_box()} -> {output_path}")
    return ExtractionResult.success(
        input_path, spec.name, output_path, rect, image_size=image_size, timings=timings
    )


def _collect(
    outcomes: Iterator[list[ExtractionResult]],
    total: int,
    progress_callback: Callable[[int, int], None] | None,
) -> BatchReport:
    report = BatchReport()
    for i, results in enumerate(outcomes, start=1):
        report.extend(results)
        if progress_callback:
            progress_callback(i, total)
    return report


def run_batch(
    inputs: Sequence[Path],
    specs: Sequence[CaptureSpec],
    origin: Origin | str = Origin.TOP_LEFT,
    dry_run: bool = False,
    verbose: bool = False,
    output_dir: Path | None = None,
    jobs: int = 1,
    codec: ImageCodec | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> BatchReport:
    """Extract every capture from every input image.

    Every pair is attempted even after failures. Results are ordered by input
    file, then by capture, regardless of ``jobs``.

    Args:
        inputs: Input image paths, in command-line order
        specs: Parsed capture specs, in command-line order
        origin: Coordinate convention of the captures (Origin or alias)
        dry_run: Only validate bounds; never encode or write
        verbose: Record decode and crop+encode timings
        output_dir: Directory for outputs (default: beside each input)
        jobs: Number of input files processed concurrently
        codec: Codec to use (default: PillowCodec)
        progress_callback: Optional callback function (current, total) -> None,
            called once per processed input file

    Returns:
        BatchReport with one result per pair (one per file on decode failure)

    Raises:
        ValueError: If jobs < 1
        InvalidOriginError: If origin is not a recognized alias
    """
    if jobs < 1:
        raise ValueError(f"Invalid number of jobs: {jobs}")

    origin = parse_origin(origin)
    codec = codec if codec is not None else PillowCodec()
    groups = list(_group_by_file(plan_work(inputs, specs)))
    total = len(groups)

    def run_group(group: tuple[Path, list[WorkItem]]) -> list[ExtractionResult]:
        input_path, items = group
        return process_file(
            input_path,
            items,
            origin,
            codec,
            dry_run=dry_run,
            verbose=verbose,
            output_dir=output_dir,
        )

    if jobs == 1 or total <= 1:
        report = _collect(map(run_group, groups), total, progress_callback)
    else:
        # Executor.map yields in submission order
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            report = _collect(executor.map(run_group, groups), total, progress_callback)

    logger.info(
        f"Processed {total} files: {len(report.succeeded)} captures succeeded, "
        f"{len(report.failures)} failed"
    )
    return report
