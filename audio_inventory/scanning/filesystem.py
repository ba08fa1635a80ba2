import os
import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, List, Set, Tuple, Union

from .. import config
from ..exceptions import InvalidArgumentError, RootNotFoundError
from ..models import FileCandidate, SafetyClass

PathLike = Union[str, os.PathLike]


def select_extensions(file_type: str) -> Set[str]:
    """Maps a file-type selector (wav/wac/flac/all) to the extensions it matches."""
    if file_type not in config.FILE_TYPES:
        raise InvalidArgumentError(
            f"Unknown file type {file_type!r}; expected one of {', '.join(config.FILE_TYPES)}"
        )
    if file_type == 'all':
        return set(config.EXT_TO_FAMILY)
    return set(config.FAMILY_EXTS[file_type])


def classify_size(size_bytes: int, threshold: int = config.UNSAFE_SIZE_THRESHOLD) -> SafetyClass:
    """Files at or below the threshold are UNSAFE and skip header decoding."""
    return SafetyClass.UNSAFE if size_bytes <= threshold else SafetyClass.SAFE


def path_sort_key(path: Path) -> Tuple[Tuple[str, str], ...]:
    """Case-insensitive component ordering; matches the walker's visiting order."""
    return tuple((part.lower(), part) for part in path.parts)


def normalize_roots(roots: Union[PathLike, Iterable[PathLike]]) -> List[Path]:
    if isinstance(roots, (str, os.PathLike)):
        roots = [roots]
    normalized = [Path(os.path.abspath(r)) for r in roots]
    if not normalized:
        raise InvalidArgumentError("At least one root path is required")
    return normalized


class PathEnumerator:
    def iter_paths(self,
                   roots: Union[PathLike, Iterable[PathLike]],
                   file_type: str = 'all') -> Iterator[Path]:
        """
        Yields every file under `roots` whose extension matches `file_type`.

        Roots are walked in the order given; inside a directory, entries are
        visited in case-insensitive name order, depth-first. Symlinked
        directories are followed like real ones.
        """
        exts = select_extensions(file_type)
        root_paths = normalize_roots(roots)

        # All roots are checked before any walking starts
        for root in root_paths:
            if not root.exists():
                raise RootNotFoundError(f"Root path {root} does not exist.")

        seen: Set[Path] = set()
        for root in root_paths:
            for path in self._walk(root):
                if path.suffix.lower() not in exts or path in seen:
                    continue
                seen.add(path)
                yield path

    def probe(self, path: Path) -> FileCandidate:
        """Stats a single file. A failed stat yields a zero-size candidate, never an exception."""
        ext = path.suffix.lower()
        try:
            size_bytes = path.stat().st_size
        except OSError as e:
            logging.warning(f"Failed to stat {path}: {e}")
            return FileCandidate(path=path, size_bytes=0, extension=ext, probe_error=f"stat failed: {e}")
        return FileCandidate(path=path, size_bytes=size_bytes, extension=ext)

    def enumerate(self,
                  roots: Union[PathLike, Iterable[PathLike]],
                  file_type: str = 'all') -> List[FileCandidate]:
        """Sequential enumerate + probe."""
        return [self.probe(p) for p in self.iter_paths(roots, file_type)]

    def _walk(self, root: Path) -> Iterator[Path]:
        """
        Depth-first walker using os.scandir. A directory whose real path is one
        of its own ancestors is a symlink loop and is skipped; other links are
        walked like ordinary directories.
        """
        if root.is_file():
            yield root
            return

        stack: List[Tuple[Path, FrozenSet[str]]] = [(root, frozenset())]
        while stack:
            current, ancestors = stack.pop()

            if current.is_dir():
                real = os.path.realpath(current)
                if real in ancestors:
                    logging.debug(f"Skipping symlink loop at {current}")
                    continue
                branch = ancestors | {real}

                try:
                    with os.scandir(current) as it:
                        entries = list(it)
                except OSError as e:
                    logging.warning(f"Cannot list {current}: {e}")
                    continue

                children = []
                for e in entries:
                    try:
                        if e.is_dir() or e.is_file():
                            children.append(Path(e.path))
                    except OSError:
                        logging.warning(f"Cannot inspect {e.path}")

                # Sort for stable traversal order, then push reversed so A is visited before Z
                children.sort(key=lambda p: (p.name.lower(), p.name))
                stack.extend((child, branch) for child in reversed(children))
            else:
                yield current
