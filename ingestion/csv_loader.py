"""CSV heat sheet import and export.

A heat sheet holds one value per row in long format::

    heat_no,section,sample,field,value
    H001,visual,,Kink,1
    H001,dimensional,3,diameter,20.61
    H001,material,1,%C,0.55
    H001,inclusion_type,1,A,Thin
    H001,ladle,,%C,0.54

Visual rows select a defect type when their value is filled in; ``No Defect``
needs any non-blank marker. A value of ``selected`` marks a defect whose piece
count is still missing, which keeps the heat pending until it is entered.
"""

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from inspection_engine import (
    DEFECT_TYPES,
    DIMENSIONAL_SAMPLES_PER_HEAT,
    LADLE_ELEMENTS,
    MATERIAL_SAMPLES_PER_HEAT,
    NO_DEFECT,
    REQUIRED_MATERIAL_ATTRIBUTES,
    DefectObservation,
    Heat,
    LadleAnalysis,
    MaterialTestSample,
)

from . import IngestionMetrics, logger

REQUIRED_COLUMNS = ("heat_no", "section", "sample", "field", "value")
SECTIONS = ("visual", "dimensional", "material", "inclusion_type", "remarks", "ladle")
INCLUSION_LETTERS = ("A", "B", "C", "D")
# Visual value for a defect that was seen but not yet counted.
SELECTED_MARKER = "selected"


class HeatSheetError(Exception):
    """Raised when a heat sheet cannot be read."""


def normalize_header(header: str) -> str:
    """Normalize a CSV header by lower-casing and replacing whitespace with underscores."""

    return "_".join(header.strip().lower().split())


def parse_csv_records(
    lines: Iterable[str], source: str = "<heat sheet>"
) -> Tuple[List[Dict[str, str]], Dict[str, str]]:
    """Parse heat sheet lines (an open file or ``io.StringIO``).

    Returns:
        A tuple containing a list of normalized records and a canonical field map
        relating normalized headers back to their original names.
    """

    reader = csv.DictReader(lines)
    field_map = {normalize_header(h): h for h in reader.fieldnames or []}
    missing = [column for column in REQUIRED_COLUMNS if column not in field_map]
    if missing:
        raise HeatSheetError(f"Heat sheet {source} is missing columns: {', '.join(missing)}")

    normalized_records: List[Dict[str, str]] = []
    for row in reader:
        normalized = {
            normalize_header(key): value.strip() if isinstance(value, str) else value
            for key, value in row.items()
            if key is not None
        }
        normalized_records.append(normalized)
    return normalized_records, field_map


def load_csv_records(
    csv_path: Path,
    metrics: IngestionMetrics | None = None,
) -> Tuple[List[Dict[str, str]], Dict[str, str]]:
    """Load a heat sheet CSV and normalize its headers."""

    logger.info("Loading heat sheet: %s", csv_path)
    try:
        with csv_path.open(newline="", encoding="utf-8-sig") as handle:
            normalized_records, field_map = parse_csv_records(handle, source=str(csv_path))
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.exception("Failed to read heat sheet %s", csv_path)
        raise HeatSheetError(f"Failed to read heat sheet {csv_path}: {exc}") from exc

    row_count = len(normalized_records)
    logger.info("Processed %s rows from %s", row_count, csv_path)
    if metrics:
        metrics.add_rows(row_count)
    return normalized_records, field_map


@dataclass
class _HeatDraft:
    heat_no: str
    defects: List[DefectObservation] = field(default_factory=list)
    diameters: List[str] = field(default_factory=lambda: [""] * DIMENSIONAL_SAMPLES_PER_HEAT)
    material: List[Dict[str, str]] = field(
        default_factory=lambda: [{} for _ in range(MATERIAL_SAMPLES_PER_HEAT)]
    )
    inclusion_types: List[Dict[str, str]] = field(
        default_factory=lambda: [{} for _ in range(MATERIAL_SAMPLES_PER_HEAT)]
    )
    remarks: List[str] = field(default_factory=lambda: [""] * MATERIAL_SAMPLES_PER_HEAT)
    ladle: Dict[str, str] = field(default_factory=dict)

    def to_heat(self) -> Heat:
        return Heat(
            heat_no=self.heat_no,
            defects=list(self.defects),
            dimensional_samples=list(self.diameters),
            material_samples=[
                MaterialTestSample(values, inclusion_types, remarks)
                for values, inclusion_types, remarks in zip(
                    self.material, self.inclusion_types, self.remarks
                )
            ],
            ladle=LadleAnalysis(self.heat_no, self.ladle) if self.ladle else None,
        )


def _sample_index(raw: Optional[str], size: int) -> Optional[int]:
    try:
        index = int(raw or "")
    except ValueError:
        return None
    if 1 <= index <= size:
        return index - 1
    return None


def _apply_row(draft: _HeatDraft, record: Dict[str, str]) -> bool:
    """Apply one record to ``draft``; returns False when the row is unusable."""
    section = (record.get("section") or "").lower()
    field_name = record.get("field") or ""
    value = record.get("value") or ""

    if section == "visual":
        if not field_name:
            return False
        if value:
            if field_name == NO_DEFECT or value.lower() == SELECTED_MARKER:
                count = None
            else:
                count = value
            draft.defects.append(DefectObservation(field_name, count))
        return True

    if section == "ladle":
        if not field_name:
            return False
        if value:
            draft.ladle[field_name] = value
        return True

    if section == "dimensional":
        index = _sample_index(record.get("sample"), DIMENSIONAL_SAMPLES_PER_HEAT)
        if index is None:
            return False
        draft.diameters[index] = value
        return True

    index = _sample_index(record.get("sample"), MATERIAL_SAMPLES_PER_HEAT)
    if index is None:
        return False
    if section == "material" and field_name:
        draft.material[index][field_name] = value
        return True
    if section == "inclusion_type" and field_name.upper() in INCLUSION_LETTERS:
        draft.inclusion_types[index][field_name.upper()] = value
        return True
    if section == "remarks":
        draft.remarks[index] = value
        return True
    return False


def build_heats(
    records: Iterable[Dict[str, str]],
    metrics: IngestionMetrics | None = None,
) -> List[Heat]:
    """Group heat sheet records into ``Heat`` objects, in first-seen order."""
    drafts: Dict[str, _HeatDraft] = {}
    for line_no, record in enumerate(records, start=2):
        heat_no = record.get("heat_no") or ""
        section = (record.get("section") or "").lower()
        if not heat_no or section not in SECTIONS:
            logger.warning("Skipping row %s: unknown heat or section %r", line_no, section)
            if metrics:
                metrics.mark_row_skipped()
            continue

        draft = drafts.setdefault(heat_no, _HeatDraft(heat_no))
        if not _apply_row(draft, record):
            logger.warning(
                "Skipping row %s for heat %s: bad sample/field in %s row",
                line_no,
                heat_no,
                section,
            )
            if metrics:
                metrics.mark_row_skipped()
                metrics.increment_extra(f"bad_{section}_rows")

    heats = [draft.to_heat() for draft in drafts.values()]
    if metrics:
        metrics.add_heats(len(heats))
    return heats


def load_heats_csv(csv_path: Path, metrics: IngestionMetrics | None = None) -> List[Heat]:
    """Read a heat sheet and return the heats it describes."""
    records, _ = load_csv_records(csv_path, metrics=metrics)
    return build_heats(records, metrics=metrics)


def write_heat_sheet_template(heat_nos: Iterable[str], output_path: Path) -> int:
    """Write a blank heat sheet with every expected row for ``heat_nos``."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(REQUIRED_COLUMNS)
        for heat_no in heat_nos:
            rows: List[Tuple[str, str, str, str, str]] = []
            rows.extend((heat_no, "visual", "", defect, "") for defect in DEFECT_TYPES)
            rows.extend(
                (heat_no, "dimensional", str(i), "diameter", "")
                for i in range(1, DIMENSIONAL_SAMPLES_PER_HEAT + 1)
            )
            for sample in range(1, MATERIAL_SAMPLES_PER_HEAT + 1):
                rows.extend(
                    (heat_no, "material", str(sample), attribute.value, "")
                    for attribute in REQUIRED_MATERIAL_ATTRIBUTES
                )
                rows.extend(
                    (heat_no, "inclusion_type", str(sample), letter, "")
                    for letter in INCLUSION_LETTERS
                )
                rows.append((heat_no, "remarks", str(sample), "", ""))
            rows.extend((heat_no, "ladle", "", element.value, "") for element in LADLE_ELEMENTS)
            writer.writerows(rows)
            count += len(rows)
    logger.info("Wrote %s template rows to %s", count, output_path)
    return count


def write_staging_jsonl(records: Iterable[Dict[str, object]], output_path: Path) -> None:
    """Write records (e.g. evaluated dispositions) to a JSONL file."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with output_path.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")
            count += 1
    logger.info("Wrote %s records to %s", count, output_path)
