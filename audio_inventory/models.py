from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from . import config


class SafetyClass(Enum):
    SAFE = 'safe'
    UNSAFE = 'unsafe'   # too small to hold a reliable header


class ContainerFamily(Enum):
    WAV = 'wav'
    WAC = 'wac'
    FLAC = 'flac'
    UNRECOGNIZED = 'unrecognized'

    @classmethod
    def from_extension(cls, ext: str) -> 'ContainerFamily':
        return cls(config.EXT_TO_FAMILY.get(ext.lower(), 'unrecognized'))


class ScanStatus(Enum):
    COMPLETE = 'complete'
    PARTIAL = 'partial'     # cancelled or past its deadline


@dataclass(frozen=True)
class FileCandidate:
    """
    A file found during enumeration, with its size probed.
    """
    path: Path
    size_bytes: int
    extension: str
    probe_error: Optional[str] = None

    @property
    def family(self) -> ContainerFamily:
        return ContainerFamily.from_extension(self.extension)


@dataclass(frozen=True)
class ParsedName:
    raw_stem: str
    location: Optional[str]
    timestamp_raw: Optional[str]
    timestamp: Optional[datetime] = None
    julian_day: Optional[int] = None
    year: Optional[int] = None
    gps_flag: bool = False


@dataclass(frozen=True)
class HeaderInfo:
    sample_rate_hz: int
    length_seconds: float
    n_channels: int

    @property
    def channel_mode(self) -> str:
        return 'mono' if self.n_channels == 1 else 'stereo'


NAME_COLUMNS = [
    'path', 'file_name', 'extension', 'container_family', 'size_bytes',
    'file_size_mb', 'safety', 'location', 'timestamp_raw', 'timestamp',
    'julian_day', 'year', 'gps_flag', 'time_index',
]
METADATA_COLUMNS = NAME_COLUMNS + [
    'sample_rate_hz', 'length_seconds', 'n_channels', 'channel_mode', 'decode_error',
]


@dataclass(frozen=True)
class Record:
    """
    One row of the inventory. Exactly one per enumerated file.
    """
    path: Path
    extension: str
    container_family: ContainerFamily
    size_bytes: int
    safety: SafetyClass
    name: ParsedName

    # Present only for SAFE files that decoded cleanly
    header: Optional[HeaderInfo] = None
    decode_error: Optional[str] = None

    # Assigned by the indexer after all partitions are merged
    time_index: Optional[int] = None

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def file_size_mb(self) -> float:
        return self.size_bytes / config.BYTES_PER_MB

    @property
    def location(self) -> Optional[str]:
        return self.name.location

    @property
    def timestamp(self) -> Optional[datetime]:
        return self.name.timestamp

    @property
    def year(self) -> Optional[int]:
        return self.name.year

    @property
    def julian_day(self) -> Optional[int]:
        return self.name.julian_day

    @property
    def is_safe(self) -> bool:
        return self.safety is SafetyClass.SAFE

    @property
    def join_key(self) -> Optional[str]:
        """Key used to match against catalog exports: location_YYYYMMDD_HHMMSS."""
        if self.location is None or self.timestamp is None:
            return None
        return config.JOIN_KEY_FORMAT.format(location=self.location, timestamp=self.timestamp)

    def to_row(self, with_metadata: bool) -> Dict[str, object]:
        row: Dict[str, object] = {
            'path': str(self.path),
            'file_name': self.file_name,
            'extension': self.extension,
            'container_family': self.container_family.value,
            'size_bytes': self.size_bytes,
            'file_size_mb': self.file_size_mb,
            'safety': self.safety.value,
            'location': self.location,
            'timestamp_raw': self.name.timestamp_raw,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'julian_day': self.julian_day,
            'year': self.year,
            'gps_flag': self.name.gps_flag,
            'time_index': self.time_index,
        }
        if with_metadata:
            h = self.header
            row['sample_rate_hz'] = h.sample_rate_hz if h else None
            row['length_seconds'] = h.length_seconds if h else None
            row['n_channels'] = h.n_channels if h else None
            row['channel_mode'] = h.channel_mode if h else None
            row['decode_error'] = self.decode_error
        return row


@dataclass(frozen=True)
class RecordSet:
    """
    The result of a scan: a flat table with one row per enumerated file.

    Column set depends on `with_metadata`; row identity does not.
    """
    records: Tuple[Record, ...]
    with_metadata: bool
    status: ScanStatus = ScanStatus.COMPLETE
    # Enumerated but never probed (scan was cancelled first)
    pending: Tuple[Path, ...] = ()
    started_at: Optional[datetime] = field(default=None, compare=False)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def is_partial(self) -> bool:
        return self.status is ScanStatus.PARTIAL

    def paths(self) -> List[Path]:
        return [r.path for r in self.records]

    def columns(self) -> List[str]:
        return list(METADATA_COLUMNS if self.with_metadata else NAME_COLUMNS)

    def to_rows(self) -> List[Dict[str, object]]:
        return [r.to_row(self.with_metadata) for r in self.records]

    def by_family(self) -> Dict[ContainerFamily, List[Record]]:
        groups: Dict[ContainerFamily, List[Record]] = {}
        for r in self.records:
            groups.setdefault(r.container_family, []).append(r)
        return groups

    def subset(self, predicate: Callable[[Record], bool]) -> 'RecordSet':
        """Returns a filtered copy; time_index values are kept as assigned."""
        return RecordSet(
            records=tuple(r for r in self.records if predicate(r)),
            with_metadata=self.with_metadata,
            status=self.status,
            pending=self.pending,
            started_at=self.started_at,
        )
