#!/usr/bin/env python3
"""Build or refresh the DuckDB spec limit table.

The table starts from the compiled default limits. An optional CSV with
``attribute,min_value,max_value[,label,unit,display_decimals]`` columns is
overlaid on top; leaving both bounds blank stores the attribute as unbounded.
A cell that is not a plain number, or a min above max, fails the build
before anything is written.
"""

from __future__ import annotations

import argparse
import csv
import re
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import duckdb

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from inspection_engine import DEFAULT_SPEC_LIMITS, SpecLimit, SpecLimitsTable

SCHEMA_FILE = REPO_ROOT / "backend" / "db" / "schema.sql"
DB_FILE = Path("data/rm_inspection.duckdb")

_number_pattern = re.compile(r"[-+]?(?:\d+\.\d*|\d*\.\d+|\d+)(?:[eE][-+]?\d+)?")


def load_schema(connection: duckdb.DuckDBPyConnection) -> None:
    """Execute the schema SQL file."""
    sql = SCHEMA_FILE.read_text(encoding="utf-8")
    connection.execute(sql)


def reset_tables(connection: duckdb.DuckDBPyConnection) -> None:
    """Clear existing rows so a rebuild reflects exactly one version."""
    connection.execute("DELETE FROM spec_limits")


def _clean_text(value: object) -> Optional[str]:
    """Return a trimmed string if the input is a non-empty string."""
    if isinstance(value, str):
        candidate = value.strip()
        if candidate:
            return candidate
    return None


def parse_numeric(value: object) -> Optional[float]:
    """Convert a limit cell to float; a blank cell means "no bound".

    A decimal comma (``0,25``) is accepted. Anything else that is not a plain
    number raises ``ValueError`` instead of silently dropping the bound.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        raise ValueError(f"not a number: {value!r}")

    candidate = value.strip().replace(",", ".")
    if not _number_pattern.fullmatch(candidate):
        raise ValueError(f"not a number: {value!r}")
    return float(candidate)


def default_rows(table: SpecLimitsTable = DEFAULT_SPEC_LIMITS) -> Dict[str, Dict[str, object]]:
    """Rows for every limit in ``table`` keyed by attribute."""
    return {
        limit.attribute: {
            "attribute": limit.attribute,
            "min_value": limit.min,
            "max_value": limit.max,
            "label": limit.display_name,
            "unit": limit.unit,
            "display_decimals": limit.precision,
        }
        for limit in table
    }


def read_override_csv(path: Path) -> List[Dict[str, object]]:
    """Read limit overrides from ``path``; rows without an attribute are ignored.

    Raises ``ValueError`` naming the line and column of any unparseable cell.
    """
    rows: List[Dict[str, object]] = []
    with path.open(newline="", encoding="utf-8-sig") as handle:
        for line_no, raw in enumerate(csv.DictReader(handle), start=2):
            attribute = _clean_text(raw.get("attribute"))
            if not attribute:
                continue
            parsed: Dict[str, Optional[float]] = {}
            for column in ("min_value", "max_value", "display_decimals"):
                try:
                    parsed[column] = parse_numeric(raw.get(column))
                except ValueError as exc:
                    raise ValueError(f"{path} line {line_no}, column {column}: {exc}") from exc
            decimals = parsed["display_decimals"]
            rows.append(
                {
                    "attribute": attribute,
                    "min_value": parsed["min_value"],
                    "max_value": parsed["max_value"],
                    "label": _clean_text(raw.get("label")),
                    "unit": raw.get("unit"),
                    "display_decimals": int(decimals) if decimals is not None else None,
                }
            )
    return rows


def check_rows(rows: Iterable[Dict[str, object]]) -> None:
    """Build a ``SpecLimit`` per bounded row so bad limits fail the build.

    Raises ``SpecLimitError`` (e.g. min above max) before anything is written.
    """
    for row in rows:
        if row.get("min_value") is None and row.get("max_value") is None:
            continue
        SpecLimit(
            row["attribute"],
            row.get("min_value"),
            row.get("max_value"),
            label=row.get("label"),
            unit=row.get("unit") or "",
        )


def build_database(
    db_path: Path = DB_FILE,
    limits_csv: Optional[Path] = None,
    version: Optional[str] = None,
) -> int:
    """Write the spec limit table to ``db_path`` and return the row count."""
    rows = default_rows()
    if limits_csv is not None:
        for override in read_override_csv(limits_csv):
            base = rows.get(override["attribute"], {})
            merged = {**base, **{k: v for k, v in override.items() if v is not None}}
            # Blank bounds in the CSV mean "no bound", not "keep the default".
            merged["min_value"] = override["min_value"]
            merged["max_value"] = override["max_value"]
            rows[override["attribute"]] = merged

    version = version or (
        f"{DEFAULT_SPEC_LIMITS.version}+{limits_csv.stem}" if limits_csv else DEFAULT_SPEC_LIMITS.version
    )

    check_rows(rows.values())

    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = duckdb.connect(str(db_path))
    try:
        load_schema(connection)
        connection.execute("BEGIN")
        try:
            reset_tables(connection)
            for row in rows.values():
                connection.execute(
                    "INSERT INTO spec_limits "
                    "(attribute, min_value, max_value, label, unit, display_decimals, version) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [
                        row["attribute"],
                        row.get("min_value"),
                        row.get("max_value"),
                        row.get("label"),
                        row.get("unit") or "",
                        row.get("display_decimals"),
                        version,
                    ],
                )
            connection.execute("COMMIT")
        except Exception:
            connection.execute("ROLLBACK")
            raise
    finally:
        connection.close()

    print(f"Spec limit table written: {len(rows)} attributes, version {version} -> {db_path}")
    return len(rows)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the DuckDB spec limit table.")
    parser.add_argument(
        "--db-path", type=Path, default=DB_FILE,
        help=f"Path to the DuckDB database (default: {DB_FILE})",
    )
    parser.add_argument(
        "--limits-csv", type=Path, default=None,
        help="Optional CSV of limit overrides",
    )
    parser.add_argument(
        "--version", default=None,
        help="Version tag stored with every row",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    build_database(args.db_path, args.limits_csv, args.version)
