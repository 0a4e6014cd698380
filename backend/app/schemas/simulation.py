from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from islandgrid import SimInput, SimulationConfig, SystemParameters


class SystemParametersIn(BaseModel):
    """Plant parameters; omitted fields take the engine defaults."""

    bus_system_type: Literal[
        "single_not_sectional_bus", "single_sectional_bus", "double_bus"
    ] | None = None

    first_cat: float | None = Field(default=None, ge=0, le=1)
    second_cat: float | None = Field(default=None, ge=0, le=1)
    third_cat: float | None = Field(default=None, ge=0, le=1)

    total_wind_turbine_count: int | None = Field(default=None, ge=0, le=200)
    wind_turbine_power_kw: float | None = Field(default=None, ge=0)
    total_diesel_generator_count: int | None = Field(default=None, ge=0, le=200)
    diesel_generator_power_kw: float | None = Field(default=None, gt=0)

    battery_capacity_kwh_per_bus: float | None = Field(default=None, ge=0)
    max_charge_current: float | None = Field(default=None, ge=0)
    max_discharge_current: float | None = Field(default=None, ge=0)
    non_reserve_discharge_level: float | None = Field(default=None, ge=0, le=1)

    wt_failure_rate_per_year: float | None = Field(default=None, ge=0)
    wt_repair_time_hours: int | None = Field(default=None, ge=0)
    dg_failure_rate_per_year: float | None = Field(default=None, ge=0)
    dg_repair_time_hours: int | None = Field(default=None, ge=0)
    bt_failure_rate_per_year: float | None = Field(default=None, ge=0)
    bt_repair_time_hours: int | None = Field(default=None, ge=0)
    bus_failure_rate_per_year: float | None = Field(default=None, ge=0)
    bus_repair_time_hours: int | None = Field(default=None, ge=0)
    brk_failure_rate_per_year: float | None = Field(default=None, ge=0)
    brk_repair_time_hours: int | None = Field(default=None, ge=0)

    switchgear_room_failure_rate_per_year: float | None = Field(default=None, ge=0)
    switchgear_room_repair_time_hours: int | None = Field(default=None, ge=0)
    bus_ccf_beta_sectional: float | None = Field(default=None, ge=0, le=1)
    bus_ccf_beta_double: float | None = Field(default=None, ge=0, le=1)

    def to_engine(self) -> SystemParameters:
        return SystemParameters(**self.model_dump(exclude_none=True))


class SimulationConfigIn(BaseModel):
    consider_failures: bool | None = None
    consider_maintenance: bool | None = None
    consider_charge_by_dg: bool | None = None
    consider_idle_reserve: bool | None = None
    consider_battery_degradation: bool | None = None
    consider_rotation_reserve: bool | None = None
    dg_start_delay_hours: float | None = Field(default=None, ge=0, lt=1)

    def to_engine(self) -> SimulationConfig:
        return SimulationConfig(**self.model_dump(exclude_none=True))


class SeriesInput(BaseModel):
    """Hourly series plus the plant and policy description."""

    wind_ms: list[float] = Field(min_length=1)
    total_load_kw: list[float] = Field(min_length=1)
    params: SystemParametersIn = Field(default_factory=SystemParametersIn)
    config: SimulationConfigIn = Field(default_factory=SimulationConfigIn)

    @model_validator(mode="after")
    def _check_lengths(self) -> SeriesInput:
        if len(self.wind_ms) != len(self.total_load_kw):
            raise ValueError(
                f"wind_ms has {len(self.wind_ms)} values, "
                f"total_load_kw has {len(self.total_load_kw)}"
            )
        return self

    def to_sim_input(self) -> SimInput:
        return SimInput(
            wind_ms=self.wind_ms,
            total_load_kw=self.total_load_kw,
            params=self.params.to_engine(),
            config=self.config.to_engine(),
        )


class SimulationRunRequest(SeriesInput):
    seed: int = Field(default=0, ge=0)
    trace: bool = False


class SimulationRunResponse(BaseModel):
    seed: int
    hours: int
    metrics: dict[str, Any]
    ens_cat3_kwh: float
    shares_pct: dict[str, float]
    trace: list[dict[str, Any]] | None = None
