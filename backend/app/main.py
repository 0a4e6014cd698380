from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1 import montecarlo, sensitivity, simulations, tasks
from app.core.logging import RequestLoggingMiddleware, setup_logging

API_PREFIX = "/api/v1"

# (module, path, tag)
ROUTERS = (
    (simulations, "/simulations", "simulations"),
    (montecarlo, "/montecarlo", "montecarlo"),
    (sensitivity, "/sensitivity", "sensitivity"),
    (tasks, "/tasks", "tasks"),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    setup_logging(json_format=settings.log_json)
    yield


def _redis_status() -> str:
    import redis

    try:
        redis.from_url(settings.redis_url, socket_connect_timeout=1).ping()
    except redis.RedisError as e:
        return f"error: {e}"
    return "ok"


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        description="Dispatch and reliability simulation of islanded wind/diesel/battery plants.",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware)

    for module, path, tag in ROUTERS:
        application.include_router(module.router, prefix=API_PREFIX + path, tags=[tag])

    @application.get("/health")
    async def health_check() -> dict:
        # The broker is only needed for the queued endpoints.
        broker = _redis_status()
        return {
            "status": "ok" if broker == "ok" else "degraded",
            "services": {"redis": broker},
        }

    return application


app = create_app()
