from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "", "case_sensitive": False}

    # App
    environment: str = "development"
    debug: bool = True
    app_name: str = "IslandGrid"
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    log_json: bool = False

    # Redis (Celery broker and result backend)
    redis_url: str = "redis://localhost:6379/0"

    # Engine limits
    max_sync_hours: int = 8760
    max_mc_iterations: int = 5000
    max_sobol_n: int = 256
    default_workers: int = 1


settings = Settings()
