"""Visual defect tally for one heat."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from . import logger
from .status import Status, category_status
from .validator import REQUIRED_MESSAGE, is_blank, parse_value

NO_DEFECT = "No Defect"

DEFECT_TYPES = (
    NO_DEFECT,
    "Distortion",
    "Twist",
    "Kink",
    "Not Straight",
    "Fold",
    "Lap",
    "Crack",
    "Pit",
    "Groove",
    "Excessive Scaling",
    "Internal Defect (Piping, Segregation)",
)

# More than this many defective pieces rejects the heat, whatever the type.
MAX_DEFECTIVE_PIECES = 1


@dataclass(frozen=True)
class DefectObservation:
    """A selected defect type and the operator-entered piece count."""

    defect_type: str
    count: object = None


@dataclass(frozen=True)
class DefectTally:
    sum: int
    rejected: bool
    complete: bool
    no_defect: bool = False
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> Status:
        return category_status(self.complete, self.rejected)


def _count_error(raw_count: object) -> Optional[str]:
    if is_blank(raw_count):
        return REQUIRED_MESSAGE
    value = parse_value(raw_count)
    if value is None or not value.is_integer():
        return "Must be an integer"
    if value < 0:
        return "Must be ≥ 0"
    return None


def tally_defects(observations: Iterable[DefectObservation]) -> DefectTally:
    """Sum defective pieces across the selected defect types.

    When ``No Defect`` is selected every other entry is ignored. A selected
    defect without a valid count leaves the tally incomplete and no rejection
    is reported until it is fixed.
    """
    observations = list(observations)
    no_defect = any(obs.defect_type == NO_DEFECT for obs in observations)
    if no_defect:
        logger.debug("No Defect selected; ignoring %s other entries", len(observations) - 1)
        return DefectTally(sum=0, rejected=False, complete=True, no_defect=True)

    if not observations:
        return DefectTally(sum=0, rejected=False, complete=False)

    total = 0
    errors: Dict[str, str] = {}
    for obs in observations:
        message = _count_error(obs.count)
        if message:
            errors[obs.defect_type] = message
            continue
        total += int(parse_value(obs.count))

    complete = not errors
    rejected = complete and total > MAX_DEFECTIVE_PIECES
    logger.debug("Defect tally sum=%s complete=%s rejected=%s", total, complete, rejected)
    return DefectTally(sum=total, rejected=rejected, complete=complete, errors=errors)


def toggle_defect(
    observations: Iterable[DefectObservation], defect_type: str
) -> List[DefectObservation]:
    """Apply the checklist selection rule for ``defect_type``.

    Selecting ``No Defect`` clears every other entry; selecting any other type
    clears ``No Defect``. Toggling an already selected type removes it along
    with its count.
    """
    current = list(observations)
    if any(obs.defect_type == defect_type for obs in current):
        return [obs for obs in current if obs.defect_type != defect_type]
    if defect_type == NO_DEFECT:
        return [DefectObservation(NO_DEFECT)]
    return [obs for obs in current if obs.defect_type != NO_DEFECT] + [
        DefectObservation(defect_type)
    ]
