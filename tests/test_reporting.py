import csv

from audio_inventory.core import scan
from audio_inventory.models import METADATA_COLUMNS, NAME_COLUMNS
from audio_inventory.reporting import summarize, write_csv


def _read(path):
    with open(path, "r", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_csv_has_one_row_per_file(archive, tmp_path):
    result = scan(archive, "all")
    out = tmp_path / "out" / "inventory.csv"

    write_csv(result, out)

    rows = _read(out)
    assert len(rows) == len(result)
    assert list(rows[0]) == NAME_COLUMNS
    assert [r["path"] for r in rows] == [str(p) for p in result.paths()]


def test_metadata_csv_columns_and_values(archive, tmp_path):
    result = scan(archive, "all", with_metadata=True)
    out = tmp_path / "inventory.csv"

    write_csv(result, out)

    rows = {r["file_name"]: r for r in _read(out)}
    assert list(next(iter(rows.values()))) == METADATA_COLUMNS

    wac = rows["SM2_0+1_20220615_060000.wac"]
    assert wac["length_seconds"] == "10.0"
    assert wac["channel_mode"] == "mono"
    assert wac["time_index"] == "1"
    assert wac["julian_day"] == "166"

    # Nulls are written as empty cells
    tiny = rows["AM-401-NE_20220615_070000.wav"]
    assert tiny["safety"] == "unsafe"
    assert tiny["sample_rate_hz"] == ""


def test_summary_counts(archive):
    s = summarize(scan(archive, "all", with_metadata=True))

    assert s["total"] == 6
    assert s["per_family"] == {"wav": 4, "wac": 1, "flac": 1}
    assert s["safe"] == 4
    assert s["unsafe"] == 2
    assert s["decoded"] == 4
    assert s["decode_failures"] == 0
    assert s["unparsed_names"] == 1
    assert s["status"] == "complete"
    # 3 x 40 s wav + 10 s wac
    assert s["total_hours"] == round(130 / 3600, 2)
