import argparse
import json
import statistics
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from audio_inventory.core import scan
from audio_inventory.reporting import summarize

STAGES = ('probe', 'decode', 'total')


def run_once(src: Path, file_type: str, with_metadata: bool, workers: int) -> Dict[str, float]:
    """Times one scan, split into the probe stage and the per-family decode stages."""
    finished: Dict[str, float] = {}

    def _mark(stage, done, total):
        if done == total:
            finished[stage] = time.perf_counter()

    t0 = time.perf_counter()
    result = scan(src, file_type=file_type, with_metadata=with_metadata, max_workers=workers, progress=_mark)
    end = time.perf_counter()

    probe_end = finished.get('probe', end)
    decode_ends = [t for stage, t in finished.items() if stage.startswith('decode')]
    return {
        'files': len(result),
        'probe': probe_end - t0,
        'decode': (max(decode_ends) - probe_end) if decode_ends else 0.0,
        'total': end - t0,
        'hours': summarize(result)['total_hours'],
    }


def benchmark(src: Path, file_type: str, with_metadata: bool, workers: List[int], repeats: int) -> List[dict]:
    rows = []
    for w in workers:
        runs = [run_once(src, file_type, with_metadata, w) for _ in range(repeats)]
        medians = {stage: statistics.median(r[stage] for r in runs) for stage in STAGES}
        rows.append({'workers': w, 'files': runs[0]['files'], 'median': medians, 'runs': runs})
        print(f"{w:>3} workers  " + "  ".join(f"{s} {medians[s]:7.3f}s" for s in STAGES))
    return rows


def parse_args():
    p = argparse.ArgumentParser(description="Time the probe and decode stages of an inventory scan per worker count.")
    p.add_argument("src", type=Path, help="Archive root to scan")
    p.add_argument("--type", dest="file_type", default="all", help="Container family to scan (wav/wac/flac/all)")
    p.add_argument("--metadata", action="store_true", help="Include the header decode stage")
    p.add_argument("--workers", type=int, nargs="+", default=[1, 2, 4, 8], help="Worker counts to test")
    p.add_argument("--repeats", type=int, default=3, help="Runs per worker count; the median is reported")
    p.add_argument("--output", type=Path, default=None, help="Optional JSON file for the raw timings")
    return p.parse_args()


def main():
    args = parse_args()
    rows = benchmark(args.src, args.file_type, args.metadata, args.workers, args.repeats)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "run_at": datetime.now().isoformat(),
            "src": str(args.src),
            "file_type": args.file_type,
            "with_metadata": args.metadata,
            "results": rows,
        }
        args.output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote timings to {args.output}")


if __name__ == "__main__":
    main()
