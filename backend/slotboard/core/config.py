from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def _split_list(value: str | list[str]) -> list[str]:
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


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Slotboard API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Catalog collections, fetched once and concatenated in this order.
    catalog_sources: list[str] = [
        "public/schedules-majors.json",
        "public/schedules-liberal-arts.json",
    ]
    catalog_fetch_timeout_seconds: float = 10.0
    catalog_wait_seconds: float = 5.0

    schedule_separator: str = "<p>"
    mask_bits_per_day: int = 32

    cell_width: float = 80.0
    cell_height: float = 30.0
    header_width: float = 120.0
    header_height: float = 40.0
    period_count: int = 24

    result_page_size: int = 100
    virtual_row_height: float = 65.0
    virtual_overscan: int = 5
    filter_yield_every: int = 500

    max_request_size_bytes: int = 1_000_000
    security_enable_hsts: bool = False
    security_hsts_max_age_seconds: int = 31536000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "catalog_sources", mode="before")
    @classmethod
    def split_list_values(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)

    @field_validator("mask_bits_per_day")
    @classmethod
    def validate_mask_width(cls, value: int) -> int:
        if value < 1:
            raise ValueError("mask_bits_per_day must be positive")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
