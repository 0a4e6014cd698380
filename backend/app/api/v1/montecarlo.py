from fastapi import APIRouter, HTTPException, Request, status

from app.config import settings
from app.core.rate_limit import montecarlo_limiter
from app.schemas.montecarlo import MonteCarloRequest, TaskQueuedResponse

router = APIRouter()


@router.post(
    "",
    response_model=TaskQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue Monte Carlo evaluation",
    description="Queue a Monte Carlo evaluation of one plant configuration. Returns a Celery "
                "task ID for polling under /api/v1/tasks.",
)
async def queue_monte_carlo(body: MonteCarloRequest, request: Request):
    montecarlo_limiter.check(request)
    if body.iterations > settings.max_mc_iterations:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"iterations must be <= {settings.max_mc_iterations}",
        )

    from app.worker.tasks import run_monte_carlo

    task = run_monte_carlo.delay(body.model_dump())
    return TaskQueuedResponse(task_id=task.id)
