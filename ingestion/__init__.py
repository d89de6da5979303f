"""Ingestion utilities for operator heat sheets."""

import logging
from dataclasses import dataclass, field
from typing import Dict

logger = logging.getLogger("ingestion")
if not logger.handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@dataclass
class IngestionMetrics:
    """Track ingestion statistics for heat sheet processing."""

    csv_rows_processed: int = 0
    csv_rows_skipped: int = 0
    heats_loaded: int = 0
    extra: Dict[str, int] = field(default_factory=dict)

    def add_rows(self, count: int) -> None:
        self.csv_rows_processed += count
        logger.debug("Added %s CSV rows; total=%s", count, self.csv_rows_processed)

    def mark_row_skipped(self) -> None:
        self.csv_rows_skipped += 1
        logger.debug("Skipped CSV row; total=%s", self.csv_rows_skipped)

    def add_heats(self, count: int) -> None:
        self.heats_loaded += count
        logger.debug("Added %s heats; total=%s", count, self.heats_loaded)

    def increment_extra(self, key: str, count: int = 1) -> None:
        self.extra[key] = self.extra.get(key, 0) + count
        logger.debug("Incremented %s metric by %s; total=%s", key, count, self.extra[key])


__all__ = ["IngestionMetrics", "logger"]
