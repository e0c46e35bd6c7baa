from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SEATLOCKER_")

    database_url: str = f"sqlite+pysqlite:///{Path(__file__).resolve().parents[1] / 'seatlocker.db'}"
    storage_namespace: str = "food-locker-seat-storage"
    locker_api_base_url: str = "http://localhost:3000"
    profile_api_base_url: str = "http://localhost:3000"
    request_timeout_seconds: float = 10.0
    identity_required: bool = True
    modal_required: bool = False
    close_delay_ms: int = 2000
    notification_duration_ms: int = 3000
    log_level: str = "INFO"
    openapi_path: Path = Path(__file__).resolve().parents[1] / "openapi/openapi.yaml"


settings = Settings()
