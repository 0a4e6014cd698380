from celery import Celery

from app.config import settings

celery_app = Celery(
    "islandgrid",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.worker.tasks", "app.worker.sensitivity_task"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    task_track_started=True,
    result_expires=86400,
    # Studies run for minutes; one task per worker process at a time.
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_routes={
        "run_monte_carlo": {"queue": "montecarlo"},
        "run_sobol": {"queue": "sensitivity"},
    },
)
