from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException, status

from app.schemas.montecarlo import TaskStatusResponse
from app.worker import celery_app

router = APIRouter()


@router.get(
    "/{task_id}",
    response_model=TaskStatusResponse,
    summary="Get task status",
    description="State, progress and result of a queued Monte Carlo or Sobol task.",
)
async def get_task(task_id: str):
    res = AsyncResult(task_id, app=celery_app)
    state = res.state

    # The result backend reports unknown IDs as PENDING.
    if state == "PENDING":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")

    body = TaskStatusResponse(task_id=task_id, state=state)
    if state == "PROGRESS":
        body.progress = res.info if isinstance(res.info, dict) else None
    elif state == "SUCCESS":
        body.result = res.result
    elif state == "FAILURE":
        body.error = str(res.result)
    return body
