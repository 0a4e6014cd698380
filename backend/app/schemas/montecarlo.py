from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.simulation import SeriesInput


class MonteCarloRequest(SeriesInput):
    iterations: int = Field(default=100, ge=1)
    base_seed: int = Field(default=0, ge=0)
    workers: int | None = Field(default=None, ge=1, le=64)
    remove_outliers: bool = False
    t_score: float = Field(default=1.96, gt=0)
    relative_error: float = Field(default=0.10, gt=0, le=1)


class TaskQueuedResponse(BaseModel):
    task_id: str
    status: str = "queued"


class TaskStatusResponse(BaseModel):
    task_id: str
    state: str
    progress: dict | None = None
    result: dict | None = None
    error: str | None = None
