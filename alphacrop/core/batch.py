"""
Batch Cropping for alphacrop

Runs Cropper.crop_and_save over many images on a bounded thread pool. Each
item is isolated: a file that cannot be read, decoded or written is logged
and recorded in the report while the rest of the batch carries on. Only
setup failures (such as an output directory that cannot be created) raise.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from tqdm import tqdm

from .croppable import Croppable, PathLike
from .cropper import Cropper
from .errors import CropError
from .finder import CroppableFinder, CroppableLoadIterator

logger = logging.getLogger(__name__)

SAVED = "saved"
SKIPPED = "skipped"
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass
class ItemResult:
    """Outcome of one item."""
    source: Path
    status: str
    output: Optional[Path] = None
    error: Optional[Exception] = None


@dataclass
class BatchReport:
    """
    Summary of a batch run. Informational only: failures recorded here were
    already reported and never abort the batch.
    """
    saved: List[Tuple[Path, Path]] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, Exception]] = field(default_factory=list)
    cancelled: List[Path] = field(default_factory=list)
    discovery_failures: List[Tuple[str, OSError]] = field(default_factory=list)

    def add(self, result: ItemResult) -> None:
        if result.status == SAVED:
            self.saved.append((result.source, result.output))
        elif result.status == SKIPPED:
            self.skipped.append(result.source)
        elif result.status == CANCELLED:
            self.cancelled.append(result.source)
        else:
            self.failed.append((result.source, result.error))

    @property
    def total(self) -> int:
        return len(self.saved) + len(self.skipped) + len(self.failed) + len(self.cancelled)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled and not self.discovery_failures

    def summary(self) -> str:
        parts = [
            f"{len(self.saved)} saved",
            f"{len(self.skipped)} unchanged",
            f"{len(self.failed)} failed",
        ]
        if self.cancelled:
            parts.append(f"{len(self.cancelled)} cancelled")
        if self.discovery_failures:
            parts.append(f"{len(self.discovery_failures)} unreadable root(s)")
        return f"Processed {self.total} images: " + ", ".join(parts)


class BatchCropper:
    """
    Crops and saves many images concurrently.

    Items are processed on a fixed-size thread pool; the call returns once
    every item has completed. Completion order is not defined.
    """

    def __init__(self, cropper: Cropper, max_workers: Optional[int] = None,
                 cancel_event: Optional[threading.Event] = None, show_progress: bool = False):
        """
        Initialize the batch cropper.

        Args:
            cropper: Cropper applied to every item
            max_workers: Pool size (ThreadPoolExecutor default if None)
            cancel_event: When set, items that have not started are skipped
            show_progress: Display a tqdm progress bar
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.cropper = cropper
        self.max_workers = max_workers
        self.cancel_event = cancel_event
        self.show_progress = show_progress

    def run(self, items: Union[CroppableLoadIterator, Iterable[Union[Croppable, PathLike]]]) -> BatchReport:
        """
        Crop and save every item.

        Args:
            items: Croppables (loaded or not), image paths, or a
                CroppableLoadIterator. The input is drained before processing.

        Returns:
            BatchReport of the run

        Raises:
            OSError: If the output directory cannot be created
        """
        report = BatchReport()
        pending = self._drain(items, report)

        self.cropper.ensure_out_dir()

        if not pending:
            logger.info(report.summary())
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="alphacrop") as pool:
            futures = [pool.submit(self._process, croppable) for croppable in pending]
            for future in tqdm(as_completed(futures), total=len(futures), desc="Cropping images",
                               unit="img", disable=not self.show_progress):
                report.add(future.result())

        logger.info(report.summary())
        return report

    def crop_images(self, paths: Sequence[PathLike]) -> BatchReport:
        """Crop a fixed list of image files."""
        return self.run(paths)

    def crop_directories(self, roots: Sequence[PathLike], finder: Optional[CroppableFinder] = None) -> BatchReport:
        """
        Discover images under the roots and crop them.

        Roots that cannot be read are logged and listed in the report's
        discovery_failures; images found under the other roots still run.
        """
        finder = finder or CroppableFinder()
        found = finder.find(roots)

        report = self.run(found.iterator())
        report.discovery_failures.extend(found.failures)
        return report

    def _drain(self, items, report: BatchReport) -> List[Croppable]:
        if not isinstance(items, CroppableLoadIterator):
            items = CroppableLoadIterator(items)

        pending: List[Croppable] = []
        items.reset()
        while items.valid():
            try:
                pending.append(items.pending())
            except CropError as e:
                source = items.source()
                logger.warning(f"Skipping {source}: {e}")
                report.failed.append((source, e))
            items.next()
        return pending

    def _process(self, croppable: Croppable) -> ItemResult:
        source = croppable.path
        if self.cancel_event is not None and self.cancel_event.is_set():
            return ItemResult(source, CANCELLED)

        try:
            if not croppable.is_loaded:
                croppable = croppable.load()
            output = self.cropper.crop_and_save(croppable)
        except Exception as e:
            # One broken image never aborts the batch
            logger.warning(f"Error cropping {source}: {e}")
            return ItemResult(source, FAILED, error=e)

        if output is None:
            return ItemResult(source, SKIPPED)

        logger.debug(f"{source} -> {output}")
        return ItemResult(source, SAVED, output=output)
