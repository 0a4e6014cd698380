import dataclasses
import logging
import math

from fastapi import APIRouter, HTTPException, Request, status

from app.config import settings
from app.core.rate_limit import simulation_limiter
from app.schemas.simulation import SimulationRunRequest, SimulationRunResponse
from islandgrid import ConfigurationError, simulate
from islandgrid.constants import HOURS_PER_YEAR

logger = logging.getLogger(__name__)

router = APIRouter()


def _safe_float(value: float | None) -> float | None:
    """Convert inf/nan to None for JSON-safe serialization."""
    if value is None:
        return None
    if math.isinf(value) or math.isnan(value):
        return None
    return value


@router.post(
    "/run",
    response_model=SimulationRunResponse,
    summary="Run one simulation",
    description="Simulate the given horizon once with a fixed seed. Limited to short horizons; "
                "use the Monte Carlo endpoint for repeated runs.",
)
def run_simulation(body: SimulationRunRequest, request: Request):
    if len(body.wind_ms) > settings.max_sync_hours:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"At most {settings.max_sync_hours} hours can be run synchronously",
        )
    # One unit per simulated year.
    simulation_limiter.check(request, cost=max(1, math.ceil(len(body.wind_ms) / HOURS_PER_YEAR)))

    try:
        sim_input = body.to_sim_input()
        metrics = simulate(sim_input, body.seed, body.trace)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    logger.info(
        "Single run: %d hours, seed %d, ENS %.1f kWh",
        metrics.hours, body.seed, metrics.ens_kwh,
        extra={"seed": body.seed},
    )

    trace = None
    if metrics.trace is not None:
        trace = [dataclasses.asdict(rec) for rec in metrics.trace]

    return SimulationRunResponse(
        seed=body.seed,
        hours=metrics.hours,
        metrics={k: _safe_float(v) if isinstance(v, float) else v for k, v in metrics.to_dict().items()},
        ens_cat3_kwh=metrics.ens_cat3_kwh,
        shares_pct={
            "wind": metrics.share_of_load(metrics.wt_to_load_kwh),
            "diesel": metrics.share_of_load(metrics.dg_to_load_kwh),
            "battery": metrics.share_of_load(metrics.bt_to_load_kwh),
            "wasted_renewable": metrics.share_of_load(metrics.wre_kwh),
            "ens": metrics.share_of_load(metrics.ens_kwh),
        },
        trace=trace,
    )
