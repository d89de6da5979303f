"""Heat and lot level accept/reject decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from . import logger
from .defects import DefectObservation, DefectTally, tally_defects
from .dimensional import (
    DIMENSIONAL_SAMPLES_PER_HEAT,
    DimensionalTally,
    ToleranceBand,
    tally_dimensional,
    tolerance_band_for_model,
)
from .material import (
    MATERIAL_SAMPLES_PER_HEAT,
    LadleAnalysis,
    MaterialTally,
    MaterialTestSample,
    tally_samples,
)
from .spec_limits import DEFAULT_SPEC_LIMITS, SpecLimitsTable
from .status import Status


@dataclass
class Heat:
    """One vendor heat as entered by the inspector.

    New heats start with the full set of empty sample slots so partially
    entered data always evaluates as pending rather than accepted.
    """

    heat_no: str
    defects: List[DefectObservation] = field(default_factory=list)
    dimensional_samples: List[object] = field(
        default_factory=lambda: [""] * DIMENSIONAL_SAMPLES_PER_HEAT
    )
    material_samples: List[MaterialTestSample] = field(
        default_factory=lambda: [MaterialTestSample() for _ in range(MATERIAL_SAMPLES_PER_HEAT)]
    )
    ladle: Optional[LadleAnalysis] = None


@dataclass(frozen=True)
class HeatDisposition:
    heat_no: str
    visual: DefectTally
    dimensional: DimensionalTally
    material: MaterialTally
    heat_status: Status

    @property
    def visual_status(self) -> Status:
        return self.visual.status

    @property
    def dimensional_status(self) -> Status:
        return self.dimensional.status

    @property
    def material_status(self) -> Status:
        return self.material.status


@dataclass(frozen=True)
class LotDisposition:
    status: Status
    heats: List[HeatDisposition]
    product_model: str = ""
    spec_limits_version: str = ""

    @property
    def requires_remark(self) -> bool:
        return self.status is Status.REJECTED


def disposition_heat(
    defect_result: DefectTally,
    dimensional_result: DimensionalTally,
    material_result: MaterialTally,
) -> Status:
    """Combine the three category results into one heat verdict.

    A confirmed failure in any category rejects the heat even while other
    inputs are still missing; otherwise any incomplete category keeps the
    heat pending.
    """
    if defect_result.rejected or dimensional_result.rejected or not material_result.heat_valid:
        return Status.REJECTED
    if not (defect_result.complete and dimensional_result.complete and material_result.complete):
        return Status.PENDING
    return Status.ACCEPTED


def disposition_lot(heat_statuses: Iterable[Status]) -> Status:
    """Rejected if any heat is, pending if any heat is, accepted otherwise.

    A lot without heats has nothing to accept and stays pending.
    """
    statuses = list(heat_statuses)
    if Status.REJECTED in statuses:
        return Status.REJECTED
    if not statuses or Status.PENDING in statuses:
        return Status.PENDING
    return Status.ACCEPTED


def evaluate_heat(
    heat: Heat,
    tolerance_band: ToleranceBand,
    spec_limits: SpecLimitsTable = DEFAULT_SPEC_LIMITS,
) -> HeatDisposition:
    visual = tally_defects(heat.defects)
    dimensional = tally_dimensional(heat.dimensional_samples, tolerance_band)
    material = tally_samples(heat.material_samples, spec_limits, ladle=heat.ladle)
    status = disposition_heat(visual, dimensional, material)
    logger.debug(
        "Heat %s visual=%s dimensional=%s material=%s -> %s",
        heat.heat_no,
        visual.status.value,
        dimensional.status.value,
        material.status.value,
        status.value,
    )
    return HeatDisposition(
        heat_no=heat.heat_no,
        visual=visual,
        dimensional=dimensional,
        material=material,
        heat_status=status,
    )


def evaluate_lot(
    heats: Sequence[Heat],
    product_model: str,
    spec_limits: SpecLimitsTable = DEFAULT_SPEC_LIMITS,
) -> LotDisposition:
    """Evaluate every heat of an inspection call and derive the lot verdict.

    Raises ``UnknownProductModelError`` when ``product_model`` has no
    diameter tolerance band.
    """
    band = tolerance_band_for_model(product_model)
    dispositions = [evaluate_heat(heat, band, spec_limits) for heat in heats]
    status = disposition_lot(d.heat_status for d in dispositions)
    logger.info(
        "Evaluated lot of %s heats for %s with limits %s: %s",
        len(dispositions),
        band.model,
        spec_limits.version,
        status.value,
    )
    return LotDisposition(
        status=status,
        heats=dispositions,
        product_model=band.model,
        spec_limits_version=spec_limits.version,
    )
