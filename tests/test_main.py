import csv

from audio_inventory import main as cli


def _rows(path):
    with open(path, "r", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_cli_writes_inventory(archive, tmp_path):
    out = tmp_path / "inventory.csv"

    code = cli.main([str(archive), "--metadata", "--no-progress", "-o", str(out)])

    assert code == cli.EXIT_OK
    rows = _rows(out)
    assert len(rows) == 6
    assert "length_seconds" in rows[0]


def test_cli_filters_known_and_writes_stage_list(archive, tmp_path):
    catalog = tmp_path / "catalog.csv"
    catalog.write_text("location,recording_timestamp\nAM-401-NE,2022-06-15 05:00:00\n", encoding="utf-8")
    out = tmp_path / "new.csv"
    stage = tmp_path / "stage.txt"

    code = cli.main([
        str(archive), "--type", "wav", "--no-progress",
        "-o", str(out), "--known-csv", str(catalog), "--stage-list", str(stage),
    ])

    assert code == cli.EXIT_OK
    names = {r["file_name"] for r in _rows(out)}
    assert "AM-401-NE_20220615_050000.wav" not in names
    assert len(names) == 3
    staged = stage.read_text(encoding="utf-8").splitlines()
    assert sorted(staged) == sorted(r["path"] for r in _rows(out))


def test_cli_fatal_errors_exit_nonzero(tmp_path):
    assert cli.main([str(tmp_path / "missing"), "--no-progress", "-o", str(tmp_path / "x.csv")]) == cli.EXIT_FATAL

    empty = tmp_path / "empty"
    empty.mkdir()
    assert cli.main([str(empty), "--no-progress", "-o", str(tmp_path / "x.csv")]) == cli.EXIT_FATAL
    assert cli.main([str(empty), "--tz", "Nowhere/Land", "-o", str(tmp_path / "x.csv")]) == cli.EXIT_FATAL


def test_cli_partial_scan_exit_code(archive, tmp_path):
    out = tmp_path / "partial.csv"

    code = cli.main([str(archive), "--deadline", "0", "--no-progress", "-o", str(out)])

    assert code == cli.EXIT_PARTIAL
    assert out.exists()
