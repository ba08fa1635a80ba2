import struct
import wave

import pytest

from audio_inventory import config


@pytest.fixture
def make_wav():
    """Writes a silent 16-bit PCM WAV file and returns its path."""
    def _make(path, seconds=40.0, rate=8000, channels=1):
        path.parent.mkdir(parents=True, exist_ok=True)
        n_frames = int(seconds * rate)
        with wave.open(str(path), "wb") as w:
            w.setnchannels(channels)
            w.setsampwidth(2)
            w.setframerate(rate)
            w.writeframes(b"\x00\x00" * channels * n_frames)
        return path
    return _make


@pytest.fixture
def make_wac():
    """Writes a .wac-style header followed by padding and returns its path."""
    def _make(path, sample_rate=44100, samples=441000, n_channels=1, size=600_000,
              name=b"WAac", version=4, frame_size=512, block_size=64, flags=0):
        path.parent.mkdir(parents=True, exist_ok=True)
        header = struct.pack(
            config.WAC_HEADER_FORMAT,
            name, version, n_channels, frame_size, block_size, flags, sample_rate, samples,
        )
        path.write_bytes(header + b"\x00" * max(0, size - len(header)))
        return path
    return _make


@pytest.fixture
def archive(tmp_path, make_wav, make_wac):
    """
    A small mixed archive:
      site_a/  two wav files on the same day, one tiny wav, one wac
      site_b/  a flac that is too small to decode, a wav with an unparseable name
    """
    root = tmp_path / "archive"
    make_wav(root / "site_a" / "AM-401-NE_20220615_060000.wav")
    make_wav(root / "site_a" / "AM-401-NE_20220615_050000.wav")
    (root / "site_a" / "AM-401-NE_20220615_070000.wav").write_bytes(b"RIFF")
    make_wac(root / "site_a" / "SM2_0+1_20220615_060000.wac")
    (root / "site_b").mkdir(parents=True)
    (root / "site_b" / "SM4_20220616_000000.flac").write_bytes(b"fLaC" + b"\x00" * 100)
    make_wav(root / "site_b" / "SM4_recording.wav")
    (root / "site_b" / "notes.txt").write_text("field notes")
    return root
