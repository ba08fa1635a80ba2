import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from .. import config
from ..models import Record


@dataclass(frozen=True)
class StagingTask:
    src: Path
    dest: Path


def staging_sources(records: Iterable[Record]) -> List[Path]:
    """Source paths to hand to the uploader, in record order."""
    return [r.path for r in records]


def plan_staging(records: Iterable[Record], dest_root: Path) -> List[StagingTask]:
    """
    Plans where each recording lands under `dest_root`: <location>/<file name>.

    Nothing is copied or linked here. Destinations that already exist are
    left out so re-running after a partial upload only plans the remainder.
    """
    dest_root = Path(dest_root)
    claimed: Dict[Path, Path] = {}
    tasks: List[StagingTask] = []

    for rec in records:
        folder = rec.location or config.UNKNOWN_LOCATION_DIR
        dest = dest_root / folder / rec.file_name

        if dest in claimed:
            logging.warning(f"{rec.path} and {claimed[dest]} both map to {dest}; keeping the first")
            continue
        claimed[dest] = rec.path

        if dest.exists():
            logging.debug(f"Already staged: {dest}")
            continue
        tasks.append(StagingTask(src=rec.path, dest=dest))

    logging.info(f"Planned {len(tasks)} files for staging into {dest_root}")
    return tasks
