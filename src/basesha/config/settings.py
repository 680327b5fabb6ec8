"""Application settings.

All configuration is sourced from environment variables (and optionally `.env`).
CircleCI sets CIRCLE_TAG on tag builds; the rest come from the job definition.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed environment-backed settings for basesha."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    circle_api_token: Optional[str] = Field(default=None, alias="CIRCLE_API_TOKEN")
    circle_tag: Optional[str] = Field(default=None, alias="CIRCLE_TAG")

    # Override the branch names passed on the command line.
    main_branch_name: Optional[str] = Field(default=None, alias="MAIN_BRANCH_NAME")
    dev_branch_name: Optional[str] = Field(default=None, alias="DEV_BRANCH_NAME")

    log_level: str = Field(default="WARNING", alias="BASESHA_LOG_LEVEL")
    log_json: bool = Field(default=False, alias="BASESHA_LOG_JSON")

    # Seconds; 0 waits forever.
    request_timeout: float = Field(default=30.0, ge=0, alias="BASESHA_REQUEST_TIMEOUT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def timeout(self) -> Optional[float]:
        return self.request_timeout or None


def describe_settings_error(error: ValidationError) -> str:
    """Render a settings ValidationError by environment variable name."""
    problems = []
    for item in error.errors():
        name = str(item["loc"][0]) if item["loc"] else "settings"
        field = Settings.model_fields.get(name)
        if field is not None and field.alias:
            name = field.alias
        problems.append(f"{name}: {item['msg']}")
    return "invalid environment: " + "; ".join(problems)
