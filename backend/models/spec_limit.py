"""Spec limit and tolerance band schemas."""

from pydantic import BaseModel

from inspection_engine import SpecLimit, ToleranceBand


class SpecLimitOut(BaseModel):
    attribute: str
    min: float | None = None
    max: float | None = None
    label: str
    unit: str = ""
    precision: int
    requirement: str

    @classmethod
    def from_limit(cls, limit: SpecLimit) -> "SpecLimitOut":
        return cls(**limit.to_dict(), requirement=limit.describe())


class SpecLimitsOut(BaseModel):
    version: str
    limits: list[SpecLimitOut]


class ToleranceBandOut(BaseModel):
    model: str
    standard_mm: float
    min_mm: float
    max_mm: float

    @classmethod
    def from_band(cls, band: ToleranceBand) -> "ToleranceBandOut":
        return cls(
            model=band.model,
            standard_mm=band.standard_mm,
            min_mm=band.min_mm,
            max_mm=band.max_mm,
        )
