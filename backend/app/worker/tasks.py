import logging
import math
from typing import Any

from app.config import settings
from app.schemas.montecarlo import MonteCarloRequest
from app.worker import celery_app

logger = logging.getLogger(__name__)

# Progress is pushed to the result backend at most this often.
PROGRESS_STEPS = 50


def sanitize(obj: Any) -> Any:
    """Replace inf/nan with None so the result is valid JSON."""
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize(v) for v in obj]
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    return obj


def progress_reporter(task, total: int):
    """Callback that publishes ``PROGRESS`` state every few percent."""
    step = max(1, total // PROGRESS_STEPS)

    def report(done: int, _total: int) -> None:
        if done % step == 0 or done == _total:
            task.update_state(
                state="PROGRESS",
                meta={"done": done, "total": _total, "percent": round(100.0 * done / _total, 1)},
            )

    return report


@celery_app.task(bind=True, name="run_monte_carlo")
def run_monte_carlo(self, payload: dict) -> dict:
    """Monte Carlo evaluation of one plant configuration."""
    from islandgrid.montecarlo import MonteCarloRunner

    request = MonteCarloRequest.model_validate(payload)
    logger.info(
        "Monte Carlo task %s: %d hours, %d iterations",
        self.request.id, len(request.wind_ms), request.iterations,
        extra={"task_id": self.request.id, "iterations": request.iterations},
    )

    try:
        sim_input = request.to_sim_input()
        runner = MonteCarloRunner(
            workers=request.workers or settings.default_workers,
            remove_outliers=request.remove_outliers,
            t_score=request.t_score,
            relative_error=request.relative_error,
            progress_callback=progress_reporter(self, request.iterations),
        )
        estimate = runner.evaluate(sim_input, request.iterations, base_seed=request.base_seed)
    except Exception:
        logger.exception("Monte Carlo task %s failed", self.request.id)
        raise

    return sanitize({"status": "completed", "estimate": estimate.to_dict()})
