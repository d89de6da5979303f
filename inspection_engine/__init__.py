"""Raw material inspection decision engine.

Turns operator-entered measurements into accept/reject/pending verdicts at the
sample, heat and lot level. Everything in this package is a pure function of
its inputs; nothing is cached between calls.
"""

import logging

logger = logging.getLogger("inspection_engine")
if not logger.handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

from .spec_limits import (  # noqa: E402
    DEFAULT_SPEC_LIMITS,
    SPEC_LIMITS_VERSION,
    AttributeId,
    SpecLimit,
    SpecLimitError,
    SpecLimitsTable,
)
from .validator import (  # noqa: E402
    ValidationResult,
    ValidationStatus,
    check_limit,
    has_valid_precision,
    parse_value,
    validate,
)
from .defects import (  # noqa: E402
    DEFECT_TYPES,
    NO_DEFECT,
    DefectObservation,
    DefectTally,
    tally_defects,
    toggle_defect,
)
from .dimensional import (  # noqa: E402
    DIMENSIONAL_SAMPLES_PER_HEAT,
    TOLERANCE_BANDS,
    DimensionalTally,
    SampleCheck,
    ToleranceBand,
    UnknownProductModelError,
    tally_dimensional,
    tolerance_band_for_model,
)
from .material import (  # noqa: E402
    INCLUSION_TYPES,
    LADLE_DEVIATION,
    LADLE_ELEMENTS,
    MATERIAL_SAMPLES_PER_HEAT,
    REQUIRED_MATERIAL_ATTRIBUTES,
    LadleAnalysis,
    LadleComparison,
    MaterialTally,
    MaterialTestSample,
    SampleResult,
    compare_ladle,
    tally_samples,
)
from .disposition import (  # noqa: E402
    Heat,
    HeatDisposition,
    LotDisposition,
    Status,
    disposition_heat,
    disposition_lot,
    evaluate_heat,
    evaluate_lot,
)

__all__ = [
    "AttributeId",
    "DEFAULT_SPEC_LIMITS",
    "DEFECT_TYPES",
    "DIMENSIONAL_SAMPLES_PER_HEAT",
    "DefectObservation",
    "DefectTally",
    "DimensionalTally",
    "Heat",
    "HeatDisposition",
    "INCLUSION_TYPES",
    "LADLE_DEVIATION",
    "LADLE_ELEMENTS",
    "LadleAnalysis",
    "LadleComparison",
    "LotDisposition",
    "MATERIAL_SAMPLES_PER_HEAT",
    "MaterialTally",
    "MaterialTestSample",
    "NO_DEFECT",
    "REQUIRED_MATERIAL_ATTRIBUTES",
    "SPEC_LIMITS_VERSION",
    "SampleCheck",
    "SampleResult",
    "SpecLimit",
    "SpecLimitError",
    "SpecLimitsTable",
    "Status",
    "TOLERANCE_BANDS",
    "ToleranceBand",
    "UnknownProductModelError",
    "ValidationResult",
    "ValidationStatus",
    "check_limit",
    "compare_ladle",
    "disposition_heat",
    "disposition_lot",
    "evaluate_heat",
    "evaluate_lot",
    "has_valid_precision",
    "logger",
    "parse_value",
    "tally_defects",
    "tally_dimensional",
    "tally_samples",
    "toggle_defect",
    "tolerance_band_for_model",
    "validate",
]
