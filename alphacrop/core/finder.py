"""
Image discovery for alphacrop

Finds candidate images under one or more root directories, optionally walking
sub-directories and filtering file names with a regular expression. Only files
whose extension has a registered codec are returned. Nothing is decoded here:
decoding is deferred to CroppableLoadIterator.current() or Croppable.load().
"""

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .codecs import is_supported
from .croppable import Croppable, PathLike, split_path
from .errors import DiscoveryError, InvalidFilterError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinderConfig:
    """
    Discovery settings.

    Fields:
        recursive: Walk every sub-directory of each root.
        pattern: Regular expression searched in each file's base name;
            None lets every file through.
    """
    recursive: bool = False
    pattern: Optional[str] = None
    regex: Optional[re.Pattern] = field(init=False, repr=False, compare=False, default=None)

    def __post_init__(self):
        if self.pattern is None:
            return
        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            raise InvalidFilterError(self.pattern, str(e)) from e
        object.__setattr__(self, "regex", compiled)

    def matches(self, file_name: str) -> bool:
        """Check a base file name against the filter and the codec registry."""
        _, _, ext = split_path(file_name)
        if not is_supported(ext):
            return False
        return self.regex is None or self.regex.search(file_name) is not None


class CroppableLoadIterator:
    """
    Cursor over a fixed list of Croppables that decodes on demand.

    Usage:
        it.reset()
        while it.valid():
            croppable = it.current()
            it.next()
    """

    def __init__(self, items: Iterable[Union[Croppable, PathLike]]):
        self._items: List[Union[Croppable, PathLike]] = list(items)
        self._index = 0

    def reset(self) -> None:
        self._index = 0

    def valid(self) -> bool:
        return self._index < len(self._items)

    def next(self) -> None:
        self._index += 1

    def pending(self) -> Croppable:
        """
        Croppable at the cursor, without decoding it.

        Raises:
            UnsupportedFormatError: If the item is a path with no codec
        """
        item = self._items[self._index]
        if isinstance(item, Croppable):
            return item
        return Croppable.from_path(item)

    def source(self) -> Path:
        """Source path of the item at the cursor."""
        item = self._items[self._index]
        return item.path if isinstance(item, Croppable) else Path(item)

    def current(self) -> Croppable:
        """Croppable at the cursor, decoded."""
        croppable = self.pending()
        return croppable if croppable.is_loaded else croppable.load()

    load = current

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Union[Croppable, PathLike]]:
        return iter(list(self._items))


@dataclass
class FindResult:
    """
    Outcome of CroppableFinder.find().

    Fields:
        croppables: Unloaded Croppables discovered under all roots.
        failures: (root, error) pairs for roots that could not be fully read.
    """
    croppables: List[Croppable] = field(default_factory=list)
    failures: List[Tuple[str, OSError]] = field(default_factory=list)

    @property
    def paths(self) -> List[Path]:
        return [c.path for c in self.croppables]

    @property
    def error(self) -> Optional[DiscoveryError]:
        """Combined error for every failed root, or None."""
        if not self.failures:
            return None
        return DiscoveryError(self.failures)

    def raise_for_errors(self) -> None:
        error = self.error
        if error is not None:
            raise error

    def iterator(self) -> CroppableLoadIterator:
        return CroppableLoadIterator(self.croppables)

    def __len__(self) -> int:
        return len(self.croppables)


class CroppableFinder:
    """Finds supported images in directories."""

    def __init__(self, config: Optional[FinderConfig] = None, **overrides):
        """
        Initialize the finder.

        Args:
            config: Base configuration (defaults if None)
            **overrides: FinderConfig fields replacing those of config,
                e.g. recursive=True or pattern=r"^b"

        Raises:
            InvalidFilterError: If the pattern does not compile
        """
        config = config or FinderConfig()
        self.config = replace(config, **overrides) if overrides else config

    def find(self, roots: Sequence[PathLike]) -> FindResult:
        """
        Search the roots for images.

        Each root is handled independently: a root that cannot be read is
        recorded in the result's failures and the others are still searched.

        Args:
            roots: Directories to search

        Returns:
            FindResult with unloaded Croppables and per-root failures
        """
        result = FindResult()
        search = self._find_recursive if self.config.recursive else self._find_in_dir

        for root in roots:
            root = Path(root)
            found, failures = search(root)
            for failed_root, error in failures:
                logger.warning(f"Unable to read {failed_root}: {error}")
            result.croppables.extend(found)
            result.failures.extend(failures)

        logger.debug(f"Found {len(result.croppables)} images in {len(roots)} root(s)")
        return result

    def find_paths(self, roots: Sequence[PathLike]) -> Tuple[List[Path], Optional[DiscoveryError]]:
        """Path-only variant of find(): (paths, combined error or None)."""
        result = self.find(roots)
        return result.paths, result.error

    def find_iter(self, roots: Sequence[PathLike]) -> Tuple[CroppableLoadIterator, Optional[DiscoveryError]]:
        """Lazy-loading variant of find(): (iterator, combined error or None)."""
        result = self.find(roots)
        return result.iterator(), result.error

    def _find_in_dir(self, root: Path) -> Tuple[List[Croppable], List[Tuple[str, OSError]]]:
        try:
            with os.scandir(root) as entries:
                names = sorted(entry.name for entry in entries if not entry.is_dir())
        except OSError as e:
            return [], [(str(root), e)]

        found = [Croppable.from_path(root / name) for name in names if self.config.matches(name)]
        return found, []

    def _find_recursive(self, root: Path) -> Tuple[List[Croppable], List[Tuple[str, OSError]]]:
        if not root.is_dir():
            error = NotADirectoryError(f"not a directory: {root}") if root.exists() else FileNotFoundError(f"no such directory: {root}")
            return [], [(str(root), error)]

        found: List[Croppable] = []
        failures: List[Tuple[str, OSError]] = []

        def on_error(error: OSError):
            failures.append((error.filename or str(root), error))

        for dir_path, dir_names, file_names in os.walk(root, onerror=on_error):
            # In-place sort fixes the walk order
            dir_names.sort()
            for name in sorted(file_names):
                if self.config.matches(name):
                    found.append(Croppable.from_path(Path(dir_path) / name))

        return found, failures
