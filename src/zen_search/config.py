"""Centralized configuration for zen-search using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zen_search.search.analyzers import available_analyzers


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``ZEN_*`` environment variables.

    Values can also come from a ``.env`` file or keyword arguments, which take
    precedence over the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="ZEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Data files
    data_dir: Path = Field(default=Path("data"), description="Directory holding the JSON collections")
    users_file: str = Field(default="users.json", min_length=1, description="Users collection file name")
    organizations_file: str = Field(
        default="organizations.json", min_length=1, description="Organizations collection file name"
    )
    tickets_file: str = Field(default="tickets.json", min_length=1, description="Tickets collection file name")

    # Matching
    text_analyzer: str = Field(default="english", description="Analyzer applied to tokenized-text fields")
    match_operator: Literal["or", "and"] = Field(
        default="or", description="Combine text query tokens with OR (any token) or AND (all tokens)"
    )
    max_results: int = Field(default=0, ge=0, description="Maximum records returned per search (0 = unlimited)")

    # Logging
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Logging level"
    )
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    # Tracing
    service_name: str = Field(default="zen-search", description="OpenTelemetry service name")

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_level(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @field_validator("text_analyzer")
    @classmethod
    def _check_analyzer(cls, value: str) -> str:
        normalized = value.lower()
        if normalized == "keyword" or normalized not in available_analyzers():
            raise ValueError(f"text_analyzer must be one of {[a for a in available_analyzers() if a != 'keyword']}")
        return normalized

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_file

    @property
    def organizations_path(self) -> Path:
        return self.data_dir / self.organizations_file

    @property
    def tickets_path(self) -> Path:
        return self.data_dir / self.tickets_file
