import logging
import re
from datetime import datetime, tzinfo
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .. import config
from ..exceptions import InvalidArgumentError
from ..models import ParsedName


def resolve_timezone(value: Union[None, str, tzinfo]) -> Optional[tzinfo]:
    """
    Accepts None (naive, implicit local time), an IANA zone name or a tzinfo.

    Filename times are recorder wall-clock times: the zone is attached to them
    as-is, not converted from some other zone.
    """
    if value is None or isinstance(value, tzinfo):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return ZoneInfo(value.strip())
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidArgumentError(f"Unknown timezone {value!r}") from e
    raise InvalidArgumentError(f"Invalid timezone {value!r}")


class FilenameParser:
    """
    Splits recorder filenames into location and date-time parts.

    Separators are tried in order; the first one present in the stem wins.
    Firmware channel markers such as `_0+1_` come before the plain underscore,
    so `SM4_0+1_20220615_060000` splits into `SM4` and `20220615_060000`.
    Adding a firmware convention means adding a separator, nothing else.

    With `tz` set, parsed timestamps keep their wall-clock value and carry
    that zone.
    """

    def __init__(self,
                 separators: Sequence[str] = tuple(config.FILENAME_SEPARATORS),
                 gps_marker: str = config.GPS_MARKER,
                 tz: Optional[tzinfo] = None):
        if not separators:
            raise InvalidArgumentError("At least one filename separator is required")
        self.separators: List[re.Pattern] = [re.compile(re.escape(s)) for s in separators]
        self.gps_marker = gps_marker
        self.tz = tz
        markers = list(config.LEADING_MARKERS)
        if gps_marker:
            markers.append(re.escape(gps_marker))
        self._leading_marker = re.compile(r"^(?:%s)+" % "|".join(markers))
        self._timestamp = re.compile(config.TIMESTAMP_PATTERN)

    def parse(self, name: Union[str, Path]) -> ParsedName:
        stem = Path(name).stem if isinstance(name, Path) else name
        gps_flag = bool(self.gps_marker) and self.gps_marker in stem

        location, remainder = self._split(stem)
        if remainder is None:
            return ParsedName(raw_stem=stem, location=location, timestamp_raw=None, gps_flag=gps_flag)

        timestamp_raw = self._leading_marker.sub('', remainder)
        timestamp = self._parse_timestamp(timestamp_raw)

        if timestamp is None:
            logging.debug(f"Unparseable date-time segment in {stem!r}")
            return ParsedName(raw_stem=stem, location=location, timestamp_raw=timestamp_raw, gps_flag=gps_flag)

        return ParsedName(
            raw_stem=stem,
            location=location,
            timestamp_raw=timestamp_raw,
            timestamp=timestamp,
            julian_day=timestamp.timetuple().tm_yday,
            year=timestamp.year,
            gps_flag=gps_flag,
        )

    def _split(self, stem: str) -> Tuple[Optional[str], Optional[str]]:
        for pattern in self.separators:
            match = pattern.search(stem)
            if match:
                return stem[:match.start()] or None, stem[match.end():]
        return stem, None

    def _parse_timestamp(self, text: str) -> Optional[datetime]:
        if self.gps_marker:
            text = text.replace(self.gps_marker, '')
        match = self._timestamp.match(text)
        if not match:
            return None
        try:
            dt = datetime.strptime(match.group(1) + match.group(2), config.TIMESTAMP_FORMAT)
        except ValueError:
            # Right shape, impossible calendar values (e.g. month 13)
            return None
        if self.tz is not None:
            dt = dt.replace(tzinfo=self.tz)
        return dt
