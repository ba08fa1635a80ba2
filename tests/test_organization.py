from audio_inventory import config
from audio_inventory.core import scan
from audio_inventory.organization.staging import StagingTask, plan_staging, staging_sources


def test_staging_sources_follow_record_order(archive):
    result = scan(archive, "all")

    assert staging_sources(result) == result.paths()


def test_plan_groups_by_location(archive, tmp_path):
    dest = tmp_path / "upload"
    result = scan(archive, "wac")

    tasks = plan_staging(result, dest)

    src = archive / "site_a" / "SM2_0+1_20220615_060000.wac"
    assert tasks == [StagingTask(src=src, dest=dest / "SM2" / src.name)]
    # Planning never touches the destination
    assert not dest.exists()


def test_plan_skips_already_staged(archive, tmp_path):
    dest = tmp_path / "upload"
    result = scan(archive, "wav")
    done = dest / "AM-401-NE" / "AM-401-NE_20220615_050000.wav"
    done.parent.mkdir(parents=True)
    done.write_bytes(b"")

    planned = {t.dest for t in plan_staging(result, dest)}

    assert done not in planned
    assert len(planned) == len(result) - 1


def test_plan_keeps_first_on_collision(tmp_path, make_wav):
    root = tmp_path / "root"
    first = make_wav(root / "a" / "SITE_20220615_060000.wav", seconds=0.1)
    make_wav(root / "b" / "SITE_20220615_060000.wav", seconds=0.1)

    tasks = plan_staging(scan(root, "wav"), tmp_path / "upload")

    assert [t.src for t in tasks] == [first]


def test_records_without_location_use_fallback_folder(tmp_path, make_wav):
    root = tmp_path / "root"
    make_wav(root / "_20220615_060000.wav", seconds=0.1)

    tasks = plan_staging(scan(root, "wav"), tmp_path / "upload")

    assert tasks[0].dest.parent.name == config.UNKNOWN_LOCATION_DIR
