from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_WEEK_DATES: dict[str, str] = {
    "Monday": "2024-01-01",
    "Tuesday": "2024-01-02",
    "Wednesday": "2024-01-03",
    "Thursday": "2024-01-04",
    "Friday": "2024-01-05",
    "Saturday": "2024-01-06",
    "Sunday": "2024-01-07",
}


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="CLASSDESK_",
    )

    project_name: str = "ClassDesk API"
    api_prefix: str = "/api"

    database_url: str = "sqlite:///./classdesk.db"
    seed_time_slots: bool = True

    log_level: str = "INFO"
    max_request_size_bytes: int = 1_000_000

    max_teachers_per_assignment: int = 2
    max_students_per_assignment: int = 5
    reconcile_in_transaction: bool = True

    week_dates: dict[str, str] = dict(DEFAULT_WEEK_DATES)

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("week_dates", mode="before")
    @classmethod
    def parse_week_dates(cls, value: str | dict[str, str]) -> dict[str, str]:
        if isinstance(value, str):
            parsed = json.loads(value)
            if not isinstance(parsed, dict):
                raise ValueError("week_dates must be a JSON object of day name to date key")
            return {str(day): str(date_key) for day, date_key in parsed.items()}
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
