import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .catalog import filter_new_recordings, load_known_recordings
from .core import scan
from .exceptions import AudioInventoryError
from .organization.staging import staging_sources
from .reporting import log_summary, write_csv
from .scanning.filename import resolve_timezone

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 3


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("mutagen").setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Audio Inventory: scan a recording archive into one table")

    p.add_argument("roots", type=Path, nargs="+", help="Directories (or files) to scan")

    p.add_argument("--type", dest="file_type", choices=config.FILE_TYPES, default="all",
                   help="Container family to include (default: all)")
    p.add_argument("--metadata", action="store_true", help="Decode headers (duration, sample rate, channels)")
    p.add_argument("--tz", default=None, help="IANA zone the filename timestamps are in (default: naive local)")
    p.add_argument("--workers", type=int, default=config.DEFAULT_MAX_WORKERS, help="Parallel I/O workers")
    p.add_argument("--unsafe-threshold", type=int, default=config.UNSAFE_SIZE_THRESHOLD,
                   help="Files at or below this many bytes skip header decoding")
    p.add_argument("--gps-marker", default=config.GPS_MARKER, help="Filename character flagging a GPS-synced clock")
    p.add_argument("--deadline", type=float, default=None,
                   help="Stop after this many seconds and keep a partial inventory")

    p.add_argument("-o", "--output", type=Path, default=Path("audio_inventory.csv"), help="Output CSV path")
    p.add_argument("--known-csv", type=Path, default=None,
                   help="Catalog export of known recordings; only new recordings are written")
    p.add_argument("--stage-list", type=Path, default=None,
                   help="Write the source paths to stage for upload, one per line")

    p.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also log to this file")

    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    logging.info("=== Audio Inventory Started ===")
    for root in args.roots:
        logging.info(f"Root: {root}")

    try:
        record_set = scan(
            args.roots,
            file_type=args.file_type,
            with_metadata=args.metadata,
            timezone=args.tz,
            unsafe_threshold=args.unsafe_threshold,
            gps_marker=args.gps_marker,
            max_workers=args.workers,
            deadline=args.deadline,
            show_progress=not args.no_progress,
        )

        if args.known_csv:
            known = load_known_recordings(args.known_csv, tz=resolve_timezone(args.tz))
            before = len(record_set)
            record_set = filter_new_recordings(record_set, known)
            logging.info(f"{before - len(record_set)} recordings already in catalog, {len(record_set)} new")

        write_csv(record_set, args.output)

        if args.stage_list:
            sources = staging_sources(record_set)
            args.stage_list.parent.mkdir(parents=True, exist_ok=True)
            args.stage_list.write_text("".join(f"{p}\n" for p in sources), encoding="utf-8")
            logging.info(f"Wrote {len(sources)} staging paths to {args.stage_list}")

        log_summary(record_set)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return EXIT_FATAL
    except AudioInventoryError as e:
        logging.error(f"{type(e).__name__}: {e}")
        return EXIT_FATAL
    except Exception:
        logging.exception("Fatal error during scan.")
        return EXIT_FATAL

    if record_set.is_partial:
        logging.warning("Scan incomplete: output covers only the files processed before the deadline.")
        return EXIT_PARTIAL
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
