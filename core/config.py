from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Literal, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DATA_DIR = Path(__file__).resolve().parents[1] / "Data"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# The KPI snapshot is pinned to these dates; they are compared as raw strings.
ATTENDANCE_REFERENCE_DATE = "2018-01-01"
SCHEDULE_REFERENCE_DATE = "01-01-2018"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseSettings):
    """Runtime settings, read from ``SCM_*`` environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_prefix="SCM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    data_dir: Path = Field(DATA_DIR, description="Directory holding the CSV datasets")
    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(3000, ge=1, le=65535, description="Bind port")
    log_level: LogLevel = Field("INFO", description="Root log level")
    cors_origins: Annotated[Tuple[str, ...], NoDecode] = Field(("*",), description="Comma separated allowed origins")
    attendance_reference_date: str = Field(ATTENDANCE_REFERENCE_DATE, description="Attendance date for the KPI snapshot")
    schedule_reference_date: str = Field(SCHEDULE_REFERENCE_DATE, description="Station schedule date for the KPI snapshot")
    load_workers: int = Field(8, ge=1, description="Threads used to load datasets at startup")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            value = [origin.strip() for origin in value.split(",") if origin.strip()]
        return tuple(value) or ("*",)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
