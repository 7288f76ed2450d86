"""
Process configuration read from the environment.

A ``.env`` file in the working directory is loaded first; variables already
set in the real environment take precedence over it.
"""

from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

PORT_ENV_VAR = "SERVICE_PORT"
HOST_ENV_VAR = "SERVICE_HOST"
REPOS_CONFIG_ENV_VAR = "REPOS_CONFIG_PATH"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
GITHUB_API_URL_ENV_VAR = "GITHUB_API_URL"
LOG_LEVEL_ENV_VAR = "LOG_LEVEL"

DEFAULT_GITHUB_API_URL = "https://api.github.com"


class Settings(BaseModel):
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="TCP port the server listens on.",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Interface the server binds to.",
    )
    repos_config_path: str = Field(
        default="repos.json",
        description="Path of the registry file mapping package names to repositories.",
    )
    github_token: Optional[str] = Field(
        default=None,
        repr=False,
        description="Fallback GitHub token used when a request carries none.",
    )
    github_api_url: str = Field(
        default=DEFAULT_GITHUB_API_URL,
        description="Base URL of the GitHub REST API.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root logging level.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("github_token")
    @classmethod
    def _header_safe_token(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not (value.isascii() and value.isprintable()):
            raise ValueError("GITHUB_TOKEN must be printable ASCII")
        return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from ``environ`` (the process environment by default).

    Unset or empty variables fall back to the model defaults. Invalid values,
    such as a non-numeric SERVICE_PORT, raise pydantic's ValidationError.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    values = {}
    for field_name, env_var in (
        ("port", PORT_ENV_VAR),
        ("host", HOST_ENV_VAR),
        ("repos_config_path", REPOS_CONFIG_ENV_VAR),
        ("github_token", GITHUB_TOKEN_ENV_VAR),
        ("github_api_url", GITHUB_API_URL_ENV_VAR),
        ("log_level", LOG_LEVEL_ENV_VAR),
    ):
        value = environ.get(env_var)
        if value:
            values[field_name] = value

    return Settings(**values)
