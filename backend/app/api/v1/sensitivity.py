from fastapi import APIRouter, HTTPException, Request, status

from app.config import settings
from app.core.rate_limit import sensitivity_limiter
from app.schemas.montecarlo import TaskQueuedResponse
from app.schemas.sensitivity import SobolRequest, TunableParameterOut
from islandgrid.sensitivity import TUNABLE_PARAMETERS

router = APIRouter()


@router.get(
    "/parameters",
    response_model=list[TunableParameterOut],
    summary="List tunable parameters",
    description="Catalogue of plant parameters a Sobol study may vary, with default ranges.",
)
async def list_parameters():
    return [p.to_dict() for p in TUNABLE_PARAMETERS.values()]


@router.post(
    "/sobol",
    response_model=TaskQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue Sobol sensitivity study",
    description="Queue a variance-based sensitivity study of ENS, fuel and moto-hours. Returns "
                "a Celery task ID for polling.",
)
async def queue_sobol(body: SobolRequest, request: Request):
    sensitivity_limiter.check(request)
    if body.n > settings.max_sobol_n:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"n must be <= {settings.max_sobol_n}",
        )
    if body.mc_iterations > settings.max_mc_iterations:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"mc_iterations must be <= {settings.max_mc_iterations}",
        )
    names = [f.name for f in body.factors]
    unknown = [n for n in names if n not in TUNABLE_PARAMETERS]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown parameters: {', '.join(unknown)}",
        )
    if len(set(names)) != len(names):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Duplicate parameters",
        )

    from app.worker.sensitivity_task import run_sobol

    task = run_sobol.delay(body.model_dump())
    return TaskQueuedResponse(task_id=task.id)
