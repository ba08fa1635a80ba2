import logging
import threading
from datetime import datetime, tzinfo
from typing import Iterable, Optional, Sequence, Union

from . import config
from .exceptions import EmptyResultError, InvalidArgumentError
from .indexing import RecordMerger, ScanEntry
from .metadata.extract import MetadataExtractor
from .models import RecordSet, SafetyClass, ScanStatus
from .scanning.filename import FilenameParser, resolve_timezone
from .scanning.filesystem import PathEnumerator, PathLike, classify_size, select_extensions
from .scanning.workers import CancelToken, ProgressCallback, WorkerPool


class InventoryScanner:
    def __init__(self,
                 unsafe_threshold: int = config.UNSAFE_SIZE_THRESHOLD,
                 gps_marker: str = config.GPS_MARKER,
                 separators: Sequence[str] = tuple(config.FILENAME_SEPARATORS),
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 extractor: Optional[MetadataExtractor] = None):
        if unsafe_threshold < 0:
            raise InvalidArgumentError(f"unsafe_threshold must be >= 0, got {unsafe_threshold}")
        if max_workers < 1:
            raise InvalidArgumentError(f"max_workers must be >= 1, got {max_workers}")

        self.unsafe_threshold = unsafe_threshold
        self.gps_marker = gps_marker
        self.separators = tuple(separators)
        self.max_workers = max_workers
        self.enumerator = PathEnumerator()
        self.merger = RecordMerger(extractor or MetadataExtractor())

    def scan(self,
             roots: Union[PathLike, Iterable[PathLike]],
             file_type: str = 'all',
             with_metadata: bool = False,
             timezone: Union[None, str, tzinfo] = None,
             deadline: Optional[float] = None,
             cancel_event: Optional[threading.Event] = None,
             progress: Optional[ProgressCallback] = None,
             show_progress: bool = False) -> RecordSet:
        """
        Runs the inventory pipeline.
        1. Enumerate files under roots (sequential directory listing)
        2. Probe: stat, size-classify, parse filename (worker pool)
        3. Decode headers per container family (worker pool, only with_metadata)
        4. Merge and assign time_index

        A cancelled or timed-out scan returns the records finished so far with
        status PARTIAL; paths never probed are listed in `pending`.
        """
        # Arguments are validated before touching the filesystem
        select_extensions(file_type)
        tz = resolve_timezone(timezone)
        parser = FilenameParser(self.separators, self.gps_marker, tz)
        started_at = datetime.now()

        token = CancelToken(deadline, cancel_event)
        pool = WorkerPool(self.max_workers, token, progress, show_progress)

        # --- Step 1: Enumeration ---
        paths = list(self.enumerator.iter_paths(roots, file_type))
        if not paths:
            raise EmptyResultError(f"No {file_type} files found under {roots}")
        logging.info(f"Found {len(paths)} {file_type} files")

        # --- Step 2: Probe ---
        def _probe(indexed):
            order, path = indexed
            candidate = self.enumerator.probe(path)
            return ScanEntry(
                order=order,
                candidate=candidate,
                safety=classify_size(candidate.size_bytes, self.unsafe_threshold),
                name=parser.parse(path),
            )

        probed, probe_cancelled = pool.map(_probe, list(enumerate(paths)), stage="probe")
        entries = [e for e in probed if e is not None]
        pending = tuple(p for p, e in zip(paths, probed) if e is None)
        unsafe = sum(1 for e in entries if e.safety is SafetyClass.UNSAFE)
        logging.info(f"Probed {len(entries)} files ({unsafe} below the {self.unsafe_threshold} byte floor)")

        # --- Step 3 & 4: Decode + Merge ---
        records, decode_cancelled = self.merger.merge(entries, with_metadata, pool)

        status = ScanStatus.COMPLETE
        if probe_cancelled or decode_cancelled:
            status = ScanStatus.PARTIAL
            logging.warning(f"Scan cancelled: {len(records)} records kept, {len(pending)} files not probed")

        return RecordSet(
            records=tuple(records),
            with_metadata=with_metadata,
            status=status,
            pending=pending,
            started_at=started_at,
        )


def scan(roots: Union[PathLike, Iterable[PathLike]],
         file_type: str = 'all',
         with_metadata: bool = False,
         timezone: Union[None, str, tzinfo] = None,
         *,
         unsafe_threshold: int = config.UNSAFE_SIZE_THRESHOLD,
         gps_marker: str = config.GPS_MARKER,
         separators: Sequence[str] = tuple(config.FILENAME_SEPARATORS),
         max_workers: int = config.DEFAULT_MAX_WORKERS,
         deadline: Optional[float] = None,
         cancel_event: Optional[threading.Event] = None,
         progress: Optional[ProgressCallback] = None,
         show_progress: bool = False) -> RecordSet:
    """
    Scans `roots` for recordings and returns one record per matching file.

    Raises:
        InvalidArgumentError: bad file_type, timezone or option value
        RootNotFoundError: a root does not exist
        EmptyResultError: nothing matched
    """
    scanner = InventoryScanner(
        unsafe_threshold=unsafe_threshold,
        gps_marker=gps_marker,
        separators=separators,
        max_workers=max_workers,
    )
    return scanner.scan(
        roots,
        file_type=file_type,
        with_metadata=with_metadata,
        timezone=timezone,
        deadline=deadline,
        cancel_event=cancel_event,
        progress=progress,
        show_progress=show_progress,
    )
