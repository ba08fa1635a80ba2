"""
Decoder for the proprietary `.wac` recorder header.

The header is a fixed 20-byte little-endian block at offset 0:

    offset  size  field
    0       4     name         ASCII tag, only its length is checked
    4       1     version
    5       1     n_channels   1 = mono, anything else = stereo/multi
    6       2     frame_size
    8       2     block_size
    10      2     flags
    12      4     sample_rate  Hz
    16      4     samples      total sample count

Only the header is read; compressed sample data is never touched.
"""
import struct
from dataclasses import dataclass
from pathlib import Path

from .. import config
from ..exceptions import HeaderDecodeError, InvalidFormatError
from ..models import HeaderInfo

HEADER = struct.Struct(config.WAC_HEADER_FORMAT)


@dataclass(frozen=True)
class WacHeader:
    name: bytes
    version: int
    n_channels: int
    frame_size: int
    block_size: int
    flags: int
    sample_rate: int
    samples: int

    @property
    def length_seconds(self) -> float:
        # Unrounded, unlike the container-reader families
        return self.samples / self.sample_rate

    @property
    def is_mono(self) -> bool:
        return self.n_channels == 1

    def to_header_info(self) -> HeaderInfo:
        return HeaderInfo(
            sample_rate_hz=self.sample_rate,
            length_seconds=self.length_seconds,
            n_channels=self.n_channels,
        )


def decode_wac_header(data: bytes) -> WacHeader:
    """Decodes the first HEADER.size bytes of a .wac file."""
    if len(data) < HEADER.size:
        raise HeaderDecodeError(f"WAC header needs {HEADER.size} bytes, got {len(data)}")

    header = WacHeader(*HEADER.unpack_from(data))
    if header.sample_rate == 0:
        raise HeaderDecodeError("WAC header has a zero sample rate")
    return header


def read_wac_header(path: Path) -> WacHeader:
    """
    Reads and decodes the header of a .wac file.

    The extension is checked before the file is opened; a mismatch raises
    InvalidFormatError whatever the file contains.
    """
    path = Path(path)
    if path.suffix.lower() not in config.WAC_EXTS:
        raise InvalidFormatError(f"{path.name} is not a .wac file")

    with path.open('rb') as f:
        data = f.read(HEADER.size)

    try:
        return decode_wac_header(data)
    except HeaderDecodeError as e:
        raise HeaderDecodeError(f"{path}: {e}") from e
