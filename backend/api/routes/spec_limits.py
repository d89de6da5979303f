"""API routes exposing the active spec limits and diameter bands."""

from fastapi import APIRouter, Depends

from backend.db.deps import get_spec_limits
from backend.models.spec_limit import SpecLimitOut, SpecLimitsOut, ToleranceBandOut
from inspection_engine import TOLERANCE_BANDS, SpecLimitsTable

router = APIRouter()


@router.get("/", response_model=SpecLimitsOut)
def list_spec_limits(spec_limits: SpecLimitsTable = Depends(get_spec_limits)) -> SpecLimitsOut:
    """Return every spec limit in the table the engine is currently using."""
    return SpecLimitsOut(
        version=spec_limits.version,
        limits=[SpecLimitOut.from_limit(limit) for limit in spec_limits],
    )


@router.get("/tolerance-bands", response_model=list[ToleranceBandOut])
def list_tolerance_bands() -> list[ToleranceBandOut]:
    """Diameter tolerance band per product model."""
    return [ToleranceBandOut.from_band(band) for band in TOLERANCE_BANDS.values()]
