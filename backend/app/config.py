from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_path: Path = Path.home() / "FairwayJobs"
    api_prefix: str = "/api/v1"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ]

    # Access tokens are minted by the hosted auth provider; we only verify them.
    auth_jwt_secret: str = "change-me"
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: str | None = None

    min_hourly_rate: float = 15.0
    max_hourly_rate: float = 200.0
    min_proposed_rate: float = 10.0
    max_proposed_rate: float = 200.0
    max_photos_per_update: int = 10
    welcome_message: str = (
        "Welcome! Your application has been accepted and you've confirmed the job. "
        "Please coordinate the job details and start when ready."
    )

    @property
    def db_path(self) -> Path:
        return self.data_path / "db.sqlite"

    model_config = {"env_prefix": "FAIRWAY_"}


settings = Settings()
