"""Spec limit dependencies for FastAPI routes."""

from functools import lru_cache
from pathlib import Path
import logging
import os

import duckdb
from fastapi import HTTPException, status

from inspection_engine import DEFAULT_SPEC_LIMITS, SpecLimit, SpecLimitError, SpecLimitsTable

logger = logging.getLogger("backend")

DB_ENV_VAR = "RM_INSPECTION_DB_PATH"
DB_CANDIDATES = (
    Path("data/rm_inspection.duckdb"),
)

SPEC_LIMITS_SQL = (
    "SELECT attribute, min_value, max_value, label, unit, display_decimals, version "
    "FROM spec_limits ORDER BY attribute"
)


@lru_cache(maxsize=1)
def get_db_path() -> Path:
    """Resolve the DuckDB path using env override and sane fallbacks."""
    env_override = os.environ.get(DB_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser()

    for candidate in DB_CANDIDATES:
        path = candidate.expanduser()
        if path.exists():
            return path

    return DB_CANDIDATES[0].expanduser()


def load_spec_limits(db_path: Path, base: SpecLimitsTable = DEFAULT_SPEC_LIMITS) -> SpecLimitsTable:
    """Overlay the ``spec_limits`` rows stored in ``db_path`` onto ``base``.

    A row with neither bound removes range checking for that attribute.
    """
    connection = duckdb.connect(str(db_path), read_only=True)
    try:
        rows = connection.execute(SPEC_LIMITS_SQL).fetchall()
    finally:
        connection.close()

    if not rows:
        logger.info("No spec limit rows in %s; using %s", db_path, base.version)
        return base

    overrides: list[SpecLimit] = []
    dropped: list[str] = []
    versions: set[str] = set()
    for attribute, min_value, max_value, label, unit, decimals, version in rows:
        versions.add(version)
        if min_value is None and max_value is None:
            dropped.append(attribute)
            continue
        overrides.append(
            SpecLimit(
                attribute,
                min_value,
                max_value,
                label=label,
                unit=unit or "",
                precision=2 if decimals is None else int(decimals),
            )
        )

    version = ",".join(sorted(versions))
    logger.info(
        "Loaded %s spec limit overrides (%s unbounded) from %s, version %s",
        len(overrides),
        len(dropped),
        db_path,
        version,
    )
    return base.with_overrides(overrides, version=version, drop=dropped)


@lru_cache(maxsize=1)
def _cached_spec_limits(db_path: Path) -> SpecLimitsTable:
    if not db_path.exists():
        logger.info("Spec limit store %s not found; using compiled defaults", db_path)
        return DEFAULT_SPEC_LIMITS
    return load_spec_limits(db_path)


def get_spec_limits() -> SpecLimitsTable:
    """Return the spec limit table, loaded once per process."""
    db_path = get_db_path()
    try:
        return _cached_spec_limits(db_path)
    except (duckdb.Error, SpecLimitError) as exc:
        logger.exception("Failed to load spec limits from %s", db_path)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=(
                f"Spec limits at {db_path} could not be loaded: {exc}. "
                f"Set {DB_ENV_VAR} to override the location."
            ),
        ) from exc
