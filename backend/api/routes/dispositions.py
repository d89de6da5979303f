"""API routes computing heat and lot dispositions.

Every request is evaluated from scratch; nothing is stored between calls.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backend.db.deps import get_spec_limits
from backend.models.inspection import (
    HeatDispositionOut,
    HeatIn,
    LotDecisionIn,
    LotDecisionOut,
    LotDispositionOut,
    LotIn,
    ValidateRequest,
    ValidationOut,
)
from inspection_engine import (
    LotDisposition,
    SpecLimitsTable,
    Status,
    ToleranceBand,
    UnknownProductModelError,
    evaluate_heat,
    evaluate_lot,
    tolerance_band_for_model,
    validate,
)

logger = logging.getLogger("backend")

router = APIRouter()


@router.post("/validate", response_model=ValidationOut)
def validate_value(
    payload: ValidateRequest,
    spec_limits: SpecLimitsTable = Depends(get_spec_limits),
) -> ValidationOut:
    """Check a single attribute value, e.g. for per-field colouring."""
    result = validate(payload.attribute, payload.value, spec_limits)
    return ValidationOut(attribute=payload.attribute, status=result.status, message=result.message)


@router.post("/heat", response_model=HeatDispositionOut)
def disposition_for_heat(
    heat: HeatIn,
    product_model: str = Query(..., description="Product model, e.g. ERC MK-III"),
    spec_limits: SpecLimitsTable = Depends(get_spec_limits),
) -> HeatDispositionOut:
    """Evaluate one heat's visual, dimensional and material results."""
    band = _band_or_422(product_model)
    return HeatDispositionOut.from_result(evaluate_heat(heat.to_engine(), band, spec_limits))


@router.post("/lot", response_model=LotDispositionOut)
def disposition_for_lot(
    lot: LotIn,
    spec_limits: SpecLimitsTable = Depends(get_spec_limits),
) -> LotDispositionOut:
    """Evaluate every heat of an inspection call and the resulting lot verdict."""
    return LotDispositionOut.from_result(_evaluate(lot, spec_limits))


@router.post("/lot/decision", response_model=LotDecisionOut)
def submit_lot_decision(
    payload: LotDecisionIn,
    spec_limits: SpecLimitsTable = Depends(get_spec_limits),
) -> LotDecisionOut:
    """Validate the inspector's final decision against the computed verdict.

    The decision record is returned to the caller, which owns the workflow
    transition that follows it.
    """
    disposition = _evaluate(payload, spec_limits)

    if disposition.status is Status.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Lot cannot be finalized while heats are pending",
        )
    if disposition.status is Status.REJECTED and payload.decision == Status.ACCEPTED.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Lot has rejected heats and cannot be accepted",
        )

    logger.info(
        "Lot decision for call %s: %s (computed %s)",
        payload.inspection_call_no or "<unnumbered>",
        payload.decision,
        disposition.status.value,
    )
    return LotDecisionOut(
        inspection_call_no=payload.inspection_call_no,
        decision=payload.decision,
        computed_status=disposition.status,
        remarks=payload.remarks.strip(),
        spec_limits_version=disposition.spec_limits_version,
    )


def _band_or_422(product_model: str) -> ToleranceBand:
    try:
        return tolerance_band_for_model(product_model)
    except UnknownProductModelError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def _evaluate(lot: LotIn, spec_limits: SpecLimitsTable) -> LotDisposition:
    _band_or_422(lot.product_model)
    return evaluate_lot([heat.to_engine() for heat in lot.heats], lot.product_model, spec_limits)
