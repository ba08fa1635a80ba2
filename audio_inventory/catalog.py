"""
Matching scanned recordings against a catalog export of known recordings.

The catalog is consumed only as a CSV of (location, recording_timestamp)
rows. Both sides are reduced to a `location_YYYYMMDD_HHMMSS` join key.
"""
import csv
import logging
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Optional, Set

from . import config
from .exceptions import InvalidArgumentError
from .models import RecordSet


def make_join_key(location: str, timestamp: datetime) -> str:
    return config.JOIN_KEY_FORMAT.format(location=location, timestamp=timestamp)


def parse_catalog_timestamp(value: str) -> Optional[datetime]:
    """
    Handles the date formats seen in catalog exports (ISO, UTC suffixes, compact).
    Returns None when nothing matches.
    """
    if not value:
        return None

    clean = value.strip()
    if clean.endswith("Z"):
        clean = clean[:-1] + "+00:00"
    clean = clean.replace("UTC", "").strip()

    # 1. ISO format (e.g. 2022-06-15T06:00:00+02:00)
    try:
        return datetime.fromisoformat(clean)
    except ValueError:
        pass

    # 2. Known fixed formats
    for fmt in config.CATALOG_DATE_FORMATS:
        try:
            return datetime.strptime(clean, fmt)
        except ValueError:
            continue
    return None


def load_known_recordings(csv_path: Path,
                          location_column: str = "location",
                          timestamp_column: str = "recording_timestamp",
                          tz: Optional[tzinfo] = None) -> Set[str]:
    """
    Reads a catalog export and returns the join keys of its recordings.

    Aware timestamps are converted to `tz` (when given) so that keys line up
    with filenames parsed in that zone.
    """
    keys: Set[str] = set()
    skipped = 0

    with open(csv_path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = {location_column, timestamp_column} - set(reader.fieldnames or [])
        if missing:
            raise InvalidArgumentError(
                f"Catalog {csv_path} is missing column(s): {', '.join(sorted(missing))}"
            )

        for row in reader:
            location = (row.get(location_column) or "").strip()
            ts = parse_catalog_timestamp(row.get(timestamp_column) or "")
            if not location or ts is None:
                skipped += 1
                continue
            if tz is not None and ts.tzinfo is not None:
                ts = ts.astimezone(tz)
            keys.add(make_join_key(location, ts))

    if skipped:
        logging.warning(f"Skipped {skipped} catalog rows without a usable location/timestamp")
    logging.info(f"Loaded {len(keys)} known recordings from {csv_path}")
    return keys


def filter_new_recordings(record_set: RecordSet, known_keys: Set[str]) -> RecordSet:
    """Records not yet in the catalog. Records without a join key count as new."""
    return record_set.subset(lambda r: r.join_key is None or r.join_key not in known_keys)


def filter_known_recordings(record_set: RecordSet, known_keys: Set[str]) -> RecordSet:
    return record_set.subset(lambda r: r.join_key is not None and r.join_key in known_keys)
