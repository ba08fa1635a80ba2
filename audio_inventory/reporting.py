import csv
import logging
from pathlib import Path
from typing import Dict

from .models import RecordSet, SafetyClass


def write_csv(record_set: RecordSet, output_csv: Path) -> None:
    """
    Writes the inventory as a flat CSV table.

    Columns depend on whether headers were decoded; row set does not.
    """
    output_csv = Path(output_csv)
    output_csv.parent.mkdir(parents=True, exist_ok=True)

    with open(output_csv, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=record_set.columns())
        writer.writeheader()
        for row in record_set.to_rows():
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})

    logging.info(f"Wrote {len(record_set)} rows to {output_csv}")


def summarize(record_set: RecordSet) -> Dict[str, object]:
    """Counts per family and safety class, plus decode failures and decoded hours."""
    per_family: Dict[str, int] = {}
    for family, records in record_set.by_family().items():
        per_family[family.value] = len(records)

    safe = sum(1 for r in record_set if r.safety is SafetyClass.SAFE)
    decoded = [r for r in record_set if r.header is not None]
    failed = sum(1 for r in record_set if r.is_safe and r.header is None) if record_set.with_metadata else 0
    unparsed = sum(1 for r in record_set if r.timestamp is None)

    return {
        "total": len(record_set),
        "status": record_set.status.value,
        "per_family": per_family,
        "safe": safe,
        "unsafe": len(record_set) - safe,
        "decoded": len(decoded),
        "decode_failures": failed,
        "unparsed_names": unparsed,
        "pending": len(record_set.pending),
        "total_hours": round(sum(r.header.length_seconds for r in decoded) / 3600.0, 2),
    }


def log_summary(record_set: RecordSet) -> None:
    s = summarize(record_set)
    families = ", ".join(f"{k}={v}" for k, v in sorted(s["per_family"].items()))
    logging.info(f"Inventory: {s['total']} files ({families}), status={s['status']}")
    logging.info(f"  safe={s['safe']} unsafe={s['unsafe']} unparsed names={s['unparsed_names']}")
    if record_set.with_metadata:
        logging.info(f"  decoded={s['decoded']} failures={s['decode_failures']} hours={s['total_hours']}")
    if s["pending"]:
        logging.warning(f"  {s['pending']} files were not probed before cancellation")
