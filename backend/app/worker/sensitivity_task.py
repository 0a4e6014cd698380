import logging

from app.config import settings
from app.schemas.sensitivity import SobolRequest
from app.worker import celery_app
from app.worker.tasks import progress_reporter, sanitize

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="run_sobol")
def run_sobol(self, payload: dict) -> dict:
    """Sobol sensitivity study over the requested factors."""
    from islandgrid.montecarlo import MonteCarloRunner
    from islandgrid.sensitivity import SobolConfig, run_sobol as sobol_study, select_factors

    request = SobolRequest.model_validate(payload)

    try:
        ranges = {
            f.name: (f.min_value, f.max_value)
            for f in request.factors
            if f.min_value is not None and f.max_value is not None
        }
        factors = select_factors([f.name for f in request.factors], ranges)
        config = SobolConfig(
            n=request.n,
            mc_iterations=request.mc_iterations,
            base_seed=request.base_seed,
            factors=factors,
        )
        logger.info(
            "Sobol task %s: n=%d, %d factors, %d evaluations",
            self.request.id, config.n, config.dim, config.total_evaluations,
            extra={"task_id": self.request.id, "iterations": request.mc_iterations},
        )
        result = sobol_study(
            request.to_sim_input(),
            config,
            MonteCarloRunner(workers=request.workers or settings.default_workers),
            progress_callback=progress_reporter(self, config.total_evaluations),
        )
    except Exception:
        logger.exception("Sobol task %s failed", self.request.id)
        raise

    return sanitize({"status": "completed", "sobol": result.to_dict()})
