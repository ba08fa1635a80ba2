import logging
import struct
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import HeaderDecodeError, InvalidArgumentError, InvalidFormatError
from .metadata.extract import MetadataExtractor
from .models import (
    ContainerFamily,
    FileCandidate,
    ParsedName,
    Record,
    RecordSet,
    SafetyClass,
    ScanStatus,
)
from .scanning.filesystem import path_sort_key
from .scanning.workers import WorkerPool

CANCELLED_MARKER = 'cancelled'


@dataclass(frozen=True)
class ScanEntry:
    """Output of the probe stage for one file; `order` is its enumeration position."""
    order: int
    candidate: FileCandidate
    safety: SafetyClass
    name: ParsedName

    @property
    def family(self) -> ContainerFamily:
        return self.candidate.family

    def to_record(self, header=None, decode_error: Optional[str] = None) -> Record:
        return Record(
            path=self.candidate.path,
            extension=self.candidate.extension,
            container_family=self.family,
            size_bytes=self.candidate.size_bytes,
            safety=self.safety,
            name=self.name,
            header=header,
            decode_error=decode_error or self.candidate.probe_error,
        )


def assign_time_index(records: Sequence[Record]) -> List[Record]:
    """
    Numbers recordings 1..k within each (location, year, julian_day) group.

    Groups are ordered by ascending timestamp; the sort is stable, so equal
    timestamps (e.g. the channel files of one deployment) keep input order.
    Records without a timestamp get no index.
    """
    groups: Dict[Tuple, List[int]] = defaultdict(list)
    for pos, rec in enumerate(records):
        if rec.timestamp is not None:
            groups[(rec.location, rec.year, rec.julian_day)].append(pos)

    indexed = [replace(r, time_index=None) if r.time_index is not None else r for r in records]
    for positions in groups.values():
        positions.sort(key=lambda p: records[p].timestamp)
        for idx, pos in enumerate(positions, start=1):
            indexed[pos] = replace(records[pos], time_index=idx)
    return indexed


class RecordMerger:
    def __init__(self, extractor: Optional[MetadataExtractor] = None):
        self.extractor = extractor or MetadataExtractor()

    def merge(self,
              entries: Sequence[ScanEntry],
              with_metadata: bool,
              pool: Optional[WorkerPool] = None) -> Tuple[List[Record], bool]:
        """
        Builds one record per entry. Returns (records, cancelled).

        SAFE entries are split by container family and each partition is
        decoded on its own, so a failing family never blocks the others.
        UNSAFE entries pass through untouched.
        """
        pool = pool or WorkerPool(max_workers=1)

        partitions: Dict[ContainerFamily, List[ScanEntry]] = {}
        unsafe: List[ScanEntry] = []
        for entry in entries:
            if entry.safety is SafetyClass.SAFE:
                partitions.setdefault(entry.family, []).append(entry)
            else:
                unsafe.append(entry)

        # Accumulator of per-family sub-tables, concatenated once at the end
        tables: List[List[Tuple[int, Record]]] = []
        cancelled = False
        for family in ContainerFamily:
            part = partitions.get(family)
            if not part:
                continue
            if with_metadata:
                table, family_cancelled = self._decode_partition(family, part, pool)
                cancelled = cancelled or family_cancelled
            else:
                table = [(e.order, e.to_record()) for e in part]
            tables.append(table)

        tables.append([(e.order, e.to_record()) for e in unsafe])

        rows = [row for table in tables for row in table]
        rows.sort(key=lambda row: row[0])
        return assign_time_index([rec for _, rec in rows]), cancelled

    def _decode_partition(self,
                          family: ContainerFamily,
                          part: List[ScanEntry],
                          pool: WorkerPool) -> Tuple[List[Tuple[int, Record]], bool]:
        if pool.token.cancelled():
            logging.info(f"Skipping {len(part)} {family.value} files: scan cancelled")
            return [(e.order, e.to_record(decode_error=CANCELLED_MARKER)) for e in part], True

        logging.info(f"Decoding {len(part)} {family.value} headers...")
        results, cancelled = pool.map(lambda e: self._decode(family, e), part, stage=f"decode {family.value}")

        table = []
        for entry, rec in zip(part, results):
            if rec is None:
                rec = entry.to_record(decode_error=CANCELLED_MARKER)
            table.append((entry.order, rec))

        failed = sum(1 for _, r in table if r.header is None)
        if failed:
            logging.warning(f"{failed} of {len(part)} {family.value} files have no header metadata")
        return table, cancelled

    def _decode(self, family: ContainerFamily, entry: ScanEntry) -> Record:
        path = entry.candidate.path
        try:
            header = self.extractor.read_header(family, path)
        except (HeaderDecodeError, InvalidFormatError, OSError, struct.error) as e:
            logging.warning(f"Header decode failed for {path}: {e}")
            return entry.to_record(decode_error=str(e))
        return entry.to_record(header=header)


def merge_record_sets(*record_sets: RecordSet) -> RecordSet:
    """
    Concatenates independent scans (e.g. one per container family) into one set.

    Rows are put back in walker order and time_index is recomputed over the
    union, so the result matches a single all-family scan of the same root.
    """
    if not record_sets:
        raise InvalidArgumentError("Nothing to merge")

    records: List[Record] = []
    seen = set()
    for rs in record_sets:
        for rec in rs:
            if rec.path in seen:
                raise InvalidArgumentError(f"Record sets overlap at {rec.path}")
            seen.add(rec.path)
            records.append(rec)

    records.sort(key=lambda r: path_sort_key(r.path))
    partial = any(rs.is_partial for rs in record_sets)
    pending = tuple(p for rs in record_sets for p in rs.pending)
    return RecordSet(
        records=tuple(assign_time_index(records)),
        with_metadata=all(rs.with_metadata for rs in record_sets),
        status=ScanStatus.PARTIAL if partial else ScanStatus.COMPLETE,
        pending=pending,
        started_at=min((rs.started_at for rs in record_sets if rs.started_at), default=None),
    )
