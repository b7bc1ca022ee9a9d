from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./mealflow.db"
    log_level: str = "INFO"

    # Meal records without an explicit owner are filed under this user
    default_user_id: str = "default_user"

    # Daily stress score starting value (also returned for days without meals)
    default_stress_score: int = 40

    # Async analysis tasks
    task_worker_count: int = 5
    task_ttl_hours: int = 24
    task_sweep_interval_seconds: int = 3600  # hourly

    # Simulated AI latency per analysis handler (seconds)
    glucose_trend_latency_seconds: float = 2.0
    eating_order_latency_seconds: float = 3.0
    health_score_latency_seconds: float = 0.5

    class Config:
        env_file = ".env"


settings = Settings()
