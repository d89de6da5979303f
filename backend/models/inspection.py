"""Pydantic schemas for heat measurements and their dispositions.

Request models carry the raw operator input through unchanged (strings,
numbers or empty) so the engine can tell "missing" from "out of range".
The entry-time precision rule is enforced here, at the API boundary.
"""

from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, StrictFloat, model_validator

from inspection_engine import (
    DIMENSIONAL_SAMPLES_PER_HEAT,
    MATERIAL_SAMPLES_PER_HEAT,
    DefectObservation,
    DefectTally,
    DimensionalTally,
    Heat,
    HeatDisposition,
    LadleAnalysis,
    LadleComparison,
    LotDisposition,
    MaterialTally,
    MaterialTestSample,
    Status,
    ValidationStatus,
    has_valid_precision,
)

MAX_DECIMALS = 3


def _check_precision(value: float | str | None) -> float | str | None:
    if not has_valid_precision(value, MAX_DECIMALS):
        raise ValueError(f"at most {MAX_DECIMALS} decimal places are allowed")
    return value


# StrictFloat keeps JSON booleans from being coerced into 1.0 / 0.0.
RawValue = Annotated[StrictFloat | str | None, AfterValidator(_check_precision)]
InclusionLetter = Literal["A", "B", "C", "D"]
InclusionType = Literal["Thick", "Thin", ""]


class DefectObservationIn(BaseModel):
    defect_type: str
    count: RawValue = None


class MaterialSampleIn(BaseModel):
    values: dict[str, RawValue] = Field(default_factory=dict)
    inclusion_types: dict[InclusionLetter, InclusionType | None] = Field(default_factory=dict)
    remarks: str = ""

    def to_engine(self) -> MaterialTestSample:
        return MaterialTestSample(
            values=dict(self.values),
            inclusion_types=dict(self.inclusion_types),
            remarks=self.remarks,
        )


class LadleIn(BaseModel):
    values: dict[str, RawValue] = Field(default_factory=dict)


class HeatIn(BaseModel):
    heat_no: str
    defects: list[DefectObservationIn] = Field(default_factory=list)
    dimensional_samples: list[RawValue] = Field(
        default_factory=lambda: [""] * DIMENSIONAL_SAMPLES_PER_HEAT
    )
    material_samples: list[MaterialSampleIn] = Field(
        default_factory=lambda: [MaterialSampleIn() for _ in range(MATERIAL_SAMPLES_PER_HEAT)]
    )
    ladle: LadleIn | None = None

    def to_engine(self) -> Heat:
        return Heat(
            heat_no=self.heat_no,
            defects=[DefectObservation(d.defect_type, d.count) for d in self.defects],
            dimensional_samples=list(self.dimensional_samples),
            material_samples=[sample.to_engine() for sample in self.material_samples],
            ladle=LadleAnalysis(self.heat_no, dict(self.ladle.values)) if self.ladle else None,
        )


class LotIn(BaseModel):
    product_model: str
    heats: list[HeatIn] = Field(default_factory=list)


class LotDecisionIn(LotIn):
    """Final IE decision for a lot, submitted with the measurements it is based on."""

    inspection_call_no: str = ""
    decision: Literal["Accepted", "Rejected"]
    remarks: str = ""

    @model_validator(mode="after")
    def _remarks_required_for_rejection(self) -> "LotDecisionIn":
        if self.decision == Status.REJECTED.value and not self.remarks.strip():
            raise ValueError("remarks are required when rejecting a lot")
        return self


class ValidateRequest(BaseModel):
    attribute: str
    value: RawValue = None


class ValidationOut(BaseModel):
    attribute: str
    status: ValidationStatus
    message: str | None = None


class DefectTallyOut(BaseModel):
    sum: int
    rejected: bool
    complete: bool
    no_defect: bool
    errors: dict[str, str]
    status: Status

    @classmethod
    def from_result(cls, tally: DefectTally) -> "DefectTallyOut":
        return cls(
            sum=tally.sum,
            rejected=tally.rejected,
            complete=tally.complete,
            no_defect=tally.no_defect,
            errors=dict(tally.errors),
            status=tally.status,
        )


class SampleCheckOut(BaseModel):
    valid: bool
    message: str | None = None


class DimensionalTallyOut(BaseModel):
    invalid_count: int
    rejected: bool
    complete: bool
    per_sample: list[SampleCheckOut]
    status: Status

    @classmethod
    def from_result(cls, tally: DimensionalTally) -> "DimensionalTallyOut":
        return cls(
            invalid_count=tally.invalid_count,
            rejected=tally.rejected,
            complete=tally.complete,
            per_sample=[SampleCheckOut(valid=c.valid, message=c.message) for c in tally.per_sample],
            status=tally.status,
        )


class SampleResultOut(BaseModel):
    errors: dict[str, str]
    is_sample_valid: bool
    complete: bool


class LadleComparisonOut(BaseModel):
    attribute: str
    ladle_value: float | None
    ladle_status: ValidationStatus
    product_values: list[float | None]
    max_deviation: float | None
    allowed_deviation: float | None
    within_deviation: bool | None

    @classmethod
    def from_result(cls, comparison: LadleComparison) -> "LadleComparisonOut":
        return cls(
            attribute=comparison.attribute,
            ladle_value=comparison.ladle_value,
            ladle_status=comparison.ladle_status,
            product_values=list(comparison.product_values),
            max_deviation=comparison.max_deviation,
            allowed_deviation=comparison.allowed_deviation,
            within_deviation=comparison.within_deviation,
        )


class MaterialTallyOut(BaseModel):
    per_sample: list[SampleResultOut]
    heat_valid: bool
    complete: bool
    status: Status
    ladle: list[LadleComparisonOut]

    @classmethod
    def from_result(cls, tally: MaterialTally) -> "MaterialTallyOut":
        return cls(
            per_sample=[
                SampleResultOut(
                    errors=dict(r.errors),
                    is_sample_valid=r.is_sample_valid,
                    complete=r.complete,
                )
                for r in tally.per_sample
            ],
            heat_valid=tally.heat_valid,
            complete=tally.complete,
            status=tally.status,
            ladle=[LadleComparisonOut.from_result(c) for c in tally.ladle],
        )


class HeatDispositionOut(BaseModel):
    heat_no: str
    visual_status: Status
    dimensional_status: Status
    material_status: Status
    heat_status: Status
    visual: DefectTallyOut
    dimensional: DimensionalTallyOut
    material: MaterialTallyOut

    @classmethod
    def from_result(cls, disposition: HeatDisposition) -> "HeatDispositionOut":
        return cls(
            heat_no=disposition.heat_no,
            visual_status=disposition.visual_status,
            dimensional_status=disposition.dimensional_status,
            material_status=disposition.material_status,
            heat_status=disposition.heat_status,
            visual=DefectTallyOut.from_result(disposition.visual),
            dimensional=DimensionalTallyOut.from_result(disposition.dimensional),
            material=MaterialTallyOut.from_result(disposition.material),
        )


class LotDispositionOut(BaseModel):
    status: Status
    product_model: str
    spec_limits_version: str
    requires_remark: bool
    heats: list[HeatDispositionOut]

    @classmethod
    def from_result(cls, disposition: LotDisposition) -> "LotDispositionOut":
        return cls(
            status=disposition.status,
            product_model=disposition.product_model,
            spec_limits_version=disposition.spec_limits_version,
            requires_remark=disposition.requires_remark,
            heats=[HeatDispositionOut.from_result(h) for h in disposition.heats],
        )


class LotDecisionOut(BaseModel):
    inspection_call_no: str
    decision: Status
    computed_status: Status
    remarks: str
    spec_limits_version: str
