from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from job_search.models import DEFAULT_PAGE_SIZE

MODULE_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_BOOKMARK_DB_PATH = MODULE_ROOT / "data" / "bookmarks.sqlite"
DEFAULT_BASE_URL = "https://www.reed.co.uk/api/1.0/"

RUN_REQUIRED_ENVS = ("JOB_SEARCH_API_KEY",)


class Settings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    request_timeout_seconds: float = Field(default=20.0, gt=0.0)
    user_agent: str = "job-search/0.1"
    debounce_ms: int = Field(default=300, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100)
    bookmark_db_path: Path = Field(default=DEFAULT_BOOKMARK_DB_PATH)
    log_level: str = "WARNING"

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        if not value.startswith(("https://", "http://")):
            raise ValueError("JOB_SEARCH_BASE_URL must use http:// or https://")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown LOG_LEVEL: {value}")
        return level

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def _env_value(environ: Mapping[str, str], key: str) -> str:
    return environ.get(key, "").strip()


def missing_envs(required: Sequence[str], environ: Mapping[str, str] | None = None) -> list[str]:
    source = os.environ if environ is None else environ
    return [key for key in required if not _env_value(source, key)]


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    source = os.environ if environ is None else environ
    try:
        payload = {
            "base_url": _env_value(source, "JOB_SEARCH_BASE_URL") or DEFAULT_BASE_URL,
            "api_key": _env_value(source, "JOB_SEARCH_API_KEY"),
            "request_timeout_seconds": float(_env_value(source, "REQUEST_TIMEOUT_SECONDS") or "20"),
            "user_agent": _env_value(source, "USER_AGENT") or "job-search/0.1",
            "debounce_ms": int(_env_value(source, "SEARCH_DEBOUNCE_MS") or "300"),
            "page_size": int(_env_value(source, "SEARCH_PAGE_SIZE") or str(DEFAULT_PAGE_SIZE)),
            "bookmark_db_path": Path(
                _env_value(source, "BOOKMARK_DB_PATH") or DEFAULT_BOOKMARK_DB_PATH
            ),
            "log_level": _env_value(source, "LOG_LEVEL") or "WARNING",
        }
        return Settings(**payload)
    except (ValidationError, ValueError) as exc:
        raise ValueError(str(exc)) from exc


def assert_required_envs(required: Sequence[str], environ: Mapping[str, str] | None = None) -> None:
    missing = missing_envs(required, environ)
    if missing:
        keys = ", ".join(missing)
        raise ValueError(f"Missing required environment variables: {keys}")


def mask_secret(value: str, visible_prefix: int = 3, visible_suffix: int = 2) -> str:
    if not value:
        return ""
    if len(value) <= visible_prefix + visible_suffix:
        return "*" * len(value)
    hidden = "*" * (len(value) - visible_prefix - visible_suffix)
    return f"{value[:visible_prefix]}{hidden}{value[-visible_suffix:]}"
