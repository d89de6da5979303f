#!/usr/bin/env python3
"""Batch disposition of heat sheets.

Every CSV heat sheet in the input folder is treated as one inspection lot.
The script evaluates each lot with the inspection engine and writes one row
per heat (plus the lot verdict) to a results CSV. Use it to re-run a set of
past inspections after the spec limits change.
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from backend.db.deps import load_spec_limits
from inspection_engine import (
    DEFAULT_SPEC_LIMITS,
    HeatDisposition,
    SpecLimitsTable,
    UnknownProductModelError,
    evaluate_lot,
)
from ingestion import IngestionMetrics
from ingestion.csv_loader import HeatSheetError, load_heats_csv

CSV_COLUMNS = [
    'lot', 'heat_no', 'product_model', 'spec_limits_version',
    'visual_status', 'defect_sum',
    'dimensional_status', 'dimensional_invalid_count',
    'material_status', 'material_errors',
    'heat_status', 'lot_status',
    'status', 'status_message', 'timestamp_utc',
]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Evaluate every heat sheet CSV in a folder as one lot each."
    )
    parser.add_argument('input_dir', type=Path, help='Folder containing heat sheet CSV files')
    parser.add_argument(
        '--product-model', required=True,
        help='Product model used for the diameter tolerance band (e.g. "ERC MK-III")'
    )
    parser.add_argument(
        '--db-path', type=Path, default=None,
        help='Optional DuckDB spec limit store (default: compiled limits)'
    )
    parser.add_argument(
        '--output', type=Path, default=Path('lot_results.csv'),
        help='Destination CSV file (default: lot_results.csv)'
    )
    parser.add_argument(
        '--progress-interval', type=int, default=25,
        help='Print progress every N files'
    )
    args = parser.parse_args(argv)
    if args.progress_interval <= 0:
        parser.error('--progress-interval must be a positive integer')
    return args


def _material_errors(disposition: HeatDisposition) -> str:
    messages = []
    for index, sample in enumerate(disposition.material.per_sample, start=1):
        messages.extend(f"S{index} {attribute}: {message}" for attribute, message in sample.errors.items())
    return '; '.join(messages)


def heat_rows(
    lot_name: str,
    dispositions: Sequence[HeatDisposition],
    lot_status: str,
    product_model: str,
    version: str,
) -> List[Dict[str, object]]:
    timestamp = datetime.now(timezone.utc).isoformat()
    return [
        {
            'lot': lot_name,
            'heat_no': d.heat_no,
            'product_model': product_model,
            'spec_limits_version': version,
            'visual_status': d.visual_status.value,
            'defect_sum': d.visual.sum,
            'dimensional_status': d.dimensional_status.value,
            'dimensional_invalid_count': d.dimensional.invalid_count,
            'material_status': d.material_status.value,
            'material_errors': _material_errors(d),
            'heat_status': d.heat_status.value,
            'lot_status': lot_status,
            'status': 'ok',
            'status_message': '',
            'timestamp_utc': timestamp,
        }
        for d in dispositions
    ]


def error_row(lot_name: str, product_model: str, message: str) -> Dict[str, object]:
    row: Dict[str, object] = {column: None for column in CSV_COLUMNS}
    row.update({
        'lot': lot_name,
        'product_model': product_model,
        'status': 'error',
        'status_message': message,
        'timestamp_utc': datetime.now(timezone.utc).isoformat(),
    })
    return row


def run_batch(
    input_dir: Path,
    product_model: str,
    spec_limits: SpecLimitsTable = DEFAULT_SPEC_LIMITS,
    progress_interval: int = 25,
) -> pd.DataFrame:
    files = sorted(input_dir.glob('*.csv'))
    rows: List[Dict[str, object]] = []
    metrics = IngestionMetrics()
    failures = 0

    for idx, path in enumerate(files, start=1):
        try:
            heats = load_heats_csv(path, metrics=metrics)
            lot = evaluate_lot(heats, product_model, spec_limits)
        except (HeatSheetError, UnknownProductModelError) as exc:
            rows.append(error_row(path.stem, product_model, str(exc)))
            failures += 1
        else:
            if not lot.heats:
                rows.append(error_row(path.stem, product_model, 'No heats found'))
                failures += 1
            else:
                rows.extend(
                    heat_rows(path.stem, lot.heats, lot.status.value, lot.product_model, lot.spec_limits_version)
                )

        if idx % progress_interval == 0 or idx == len(files):
            print(f"Processed {idx} / {len(files)} lots (failures={failures})", flush=True)

    print(
        f"Rows read={metrics.csv_rows_processed}, skipped={metrics.csv_rows_skipped}, "
        f"heats={metrics.heats_loaded}"
    )
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    spec_limits = load_spec_limits(args.db_path) if args.db_path else DEFAULT_SPEC_LIMITS

    results = run_batch(args.input_dir, args.product_model, spec_limits, args.progress_interval)
    if results.empty:
        print("No heat sheets matched.")
        return

    args.output.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(args.output, index=False)

    lots = results.drop_duplicates('lot')
    summary = lots['lot_status'].fillna('error').value_counts().to_dict()
    print(f"Finished. Lot verdicts: {summary}. Results saved to {args.output}")


if __name__ == '__main__':
    main()
