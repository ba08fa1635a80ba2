import io
import struct
from pathlib import Path

import pytest

from audio_inventory import config
from audio_inventory.exceptions import HeaderDecodeError, InvalidFormatError
from audio_inventory.metadata.wac import decode_wac_header, read_wac_header


def test_header_is_bit_exact(tmp_path, make_wac):
    p = make_wac(tmp_path / "rec.wac", sample_rate=44100, samples=441000, n_channels=1)

    header = read_wac_header(p)

    assert header.sample_rate == 44100
    assert header.samples == 441000
    assert header.length_seconds == 10.0
    assert header.n_channels == 1
    assert header.is_mono

    info = header.to_header_info()
    assert info.length_seconds == 10.0
    assert info.n_channels == 1
    assert info.channel_mode == "mono"


def test_every_field_decoded_little_endian():
    data = (
        b"WAac"
        + bytes([3, 2])
        + (0x0102).to_bytes(2, "little")
        + (0x0304).to_bytes(2, "little")
        + (0x0506).to_bytes(2, "little")
        + (24000).to_bytes(4, "little")
        + (0x01020304).to_bytes(4, "little")
    )

    header = decode_wac_header(data + b"trailing sample data")

    assert header.name == b"WAac"
    assert header.version == 3
    assert header.n_channels == 2
    assert not header.is_mono
    assert header.frame_size == 0x0102
    assert header.block_size == 0x0304
    assert header.flags == 0x0506
    assert header.sample_rate == 24000
    assert header.samples == 0x01020304


def test_header_format_has_no_padding():
    assert struct.calcsize(config.WAC_HEADER_FORMAT) == 20


def test_length_is_not_rounded(tmp_path, make_wac):
    p = make_wac(tmp_path / "odd.wac", sample_rate=3, samples=1000)

    assert read_wac_header(p).length_seconds == 1000 / 3


def test_wrong_extension_rejected_before_opening(tmp_path):
    # The file does not exist: InvalidFormatError proves nothing was opened
    with pytest.raises(InvalidFormatError):
        read_wac_header(tmp_path / "missing.wav")


def test_wrong_extension_rejected_even_with_valid_bytes(tmp_path, make_wac):
    p = make_wac(tmp_path / "rec.wac")
    renamed = p.rename(tmp_path / "rec.flac")

    with pytest.raises(InvalidFormatError):
        read_wac_header(renamed)


def test_uppercase_extension_accepted(tmp_path, make_wac):
    p = make_wac(tmp_path / "REC.WAC", sample_rate=8000, samples=16000)

    assert read_wac_header(p).length_seconds == 2.0


def test_short_file_is_a_decode_error(tmp_path):
    p = tmp_path / "short.wac"
    p.write_bytes(b"WAac\x01")

    with pytest.raises(HeaderDecodeError):
        read_wac_header(p)


def test_zero_sample_rate_is_a_decode_error(tmp_path, make_wac):
    p = make_wac(tmp_path / "zero.wac", sample_rate=0)

    with pytest.raises(HeaderDecodeError):
        read_wac_header(p)


class TrackingBytesIO(io.BytesIO):
    opened = []

    def __init__(self, data):
        super().__init__(data)
        TrackingBytesIO.opened.append(self)


def test_handle_closed_on_decode_error(monkeypatch, tmp_path):
    TrackingBytesIO.opened = []
    monkeypatch.setattr(Path, "open", lambda self, mode="r": TrackingBytesIO(b"WA"))

    with pytest.raises(HeaderDecodeError):
        read_wac_header(tmp_path / "broken.wac")

    assert len(TrackingBytesIO.opened) == 1
    assert TrackingBytesIO.opened[0].closed
