import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import mutagen
from mutagen.flac import FLAC
from mutagen.wave import WAVE

from .. import config
from ..exceptions import HeaderDecodeError, InvalidFormatError
from ..models import ContainerFamily, HeaderInfo
from .wac import read_wac_header

# (sample_rate, samples, channels)
StreamFields = Tuple[int, int, int]


class MetadataExtractor:
    """
    Unified interface for reading HeaderInfo from each container family.

    Strategies:
      - wav:  'mutagen.wave' -> falls back to content sniffing with 'mutagen.File'.
      - wac:  bespoke binary header decoder.
      - flac: 'mutagen.flac' (STREAMINFO block) -> falls back to 'mutagen.File'.

    Family A and C lengths are samples / sample_rate rounded to 2 decimals.
    """

    def __init__(self):
        self._readers: Dict[ContainerFamily, Callable[[Path], HeaderInfo]] = {
            ContainerFamily.WAV: self.get_wav_header,
            ContainerFamily.WAC: self.get_wac_header,
            ContainerFamily.FLAC: self.get_flac_header,
        }

    def read_header(self, family: ContainerFamily, path: Path) -> HeaderInfo:
        """Dispatches to the reader for `family`."""
        reader = self._readers.get(family)
        if reader is None:
            raise InvalidFormatError(f"No header reader for {family.value} file {Path(path).name}")
        return reader(path)

    def get_wac_header(self, path: Path) -> HeaderInfo:
        return read_wac_header(path).to_header_info()

    def get_wav_header(self, path: Path) -> HeaderInfo:
        self._check_extension(path, config.WAV_EXTS)
        return self._read_with_fallback(path, self._extract_wave)

    def get_flac_header(self, path: Path) -> HeaderInfo:
        self._check_extension(path, config.FLAC_EXTS)
        return self._read_with_fallback(path, self._extract_flac)

    # --- Internal Extraction Helpers ---

    def _read_with_fallback(self, path: Path, primary: Callable[[Path], StreamFields]) -> HeaderInfo:
        # Strategy 1: the family's own parser
        try:
            return self._build(*primary(path))
        except Exception as e:
            # mutagen raises a mix of MutagenError, struct and value errors on damaged streams
            logging.debug(f"Typed parser failed for {path}: {e}")
            first_error = e

        # Strategy 2: let mutagen sniff the content (mislabelled containers)
        try:
            fields = self._extract_sniffed(path)
        except Exception as e:
            logging.debug(f"mutagen.File failed for {path}: {e}")
            fields = None

        if fields is None:
            raise HeaderDecodeError(f"Could not read header of {path}: {first_error}") from first_error
        return self._build(*fields)

    def _extract_wave(self, path: Path) -> StreamFields:
        """Parses the RIFF fmt/data chunks; the sample count is recovered from length."""
        info = WAVE(str(path)).info
        if not info.sample_rate:
            raise ValueError("WAV header has no sample rate")
        return info.sample_rate, round(info.length * info.sample_rate), info.channels

    def _extract_flac(self, path: Path) -> StreamFields:
        info = FLAC(str(path)).info
        if not info.sample_rate:
            raise ValueError("FLAC STREAMINFO has no sample rate")
        return info.sample_rate, info.total_samples, info.channels

    def _extract_sniffed(self, path: Path) -> Optional[StreamFields]:
        audio = mutagen.File(str(path))
        if audio is None or audio.info is None:
            return None

        info = audio.info
        rate = getattr(info, "sample_rate", None)
        channels = getattr(info, "channels", None)
        if not rate or not channels:
            return None

        samples = getattr(info, "total_samples", None)
        if not samples:
            samples = round(info.length * rate)
        return rate, samples, channels

    def _build(self, sample_rate: int, samples: int, channels: int) -> HeaderInfo:
        return HeaderInfo(
            sample_rate_hz=int(sample_rate),
            length_seconds=round(samples / sample_rate, config.LENGTH_DECIMALS),
            n_channels=int(channels),
        )

    def _check_extension(self, path: Path, exts) -> None:
        if Path(path).suffix.lower() not in exts:
            raise InvalidFormatError(f"{Path(path).name} does not match {sorted(exts)}")
