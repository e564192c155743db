from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from errors import ConfigurationError


_CONFIG_PATH_ENV = "MSPARKING_CONFIG_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CONFIG_PATH = "config/default.toml"


def _check_http_url(value: str) -> str:
    try:
        parsed = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise ValueError(f"invalid URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError("URL must be absolute http(s) with a host")
    return value


class ApiConfig(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    url: str = Field(..., min_length=1)
    scraping_interval_secs: int = Field(..., gt=0)
    request_timeout_secs: float = Field(default=10.0, gt=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_http_url(value)


class InfluxDbConfig(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    url: str = Field(..., min_length=1)
    org: str = Field(..., min_length=1)
    bucket: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    timeout_secs: float = Field(default=10.0, gt=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_http_url(value)


class AppConfig(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    api: ApiConfig
    influxdb: InfluxDbConfig


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    config_path: Path
    app: AppConfig


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


def load_app_config(path: Path) -> AppConfig:
    """Read and validate the TOML configuration file at ``path``."""
    try:
        with path.open("rb") as handle:
            raw: Dict[str, Any] = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file {str(path)!r} not found.") from exc
    except OSError as exc:
        raise ConfigurationError(f"Configuration file {str(path)!r} is unreadable: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Configuration file {str(path)!r} is not valid TOML: {exc}") from exc

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration in {str(path)!r}: {_describe_validation_error(exc)}"
        ) from exc


@lru_cache
def get_settings() -> Settings:
    path = Path(_read_str_env(_CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
    return Settings(
        config_path=path,
        app=load_app_config(path),
    )
