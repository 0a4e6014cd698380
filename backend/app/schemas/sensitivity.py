from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from app.schemas.simulation import SeriesInput


class SobolFactorIn(BaseModel):
    name: str
    min_value: float | None = None
    max_value: float | None = None

    @model_validator(mode="after")
    def _check_range(self) -> SobolFactorIn:
        if (self.min_value is None) != (self.max_value is None):
            raise ValueError("give both min_value and max_value, or neither")
        if self.min_value is not None and not self.max_value > self.min_value:
            raise ValueError("max_value must be > min_value")
        return self


class SobolRequest(SeriesInput):
    n: int = Field(default=16, ge=1)
    mc_iterations: int = Field(default=10, ge=1)
    base_seed: int = Field(default=0, ge=0)
    workers: int | None = Field(default=None, ge=1, le=64)
    factors: list[SobolFactorIn] = Field(min_length=1, max_length=18)


class TunableParameterOut(BaseModel):
    name: str
    field: str
    min_value: float
    max_value: float
    integer: bool
    description: str
