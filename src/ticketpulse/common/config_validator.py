"""Configuration validation models using Pydantic."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..standards.schemas import SERVICE_KEYS, TICKET_FIELDS


class PathsConfig(BaseModel):
    """Filesystem locations."""

    model_config = ConfigDict(frozen=True)

    logs_dir: str = Field("logs", description="Directory for system.log")


class IngestionConfig(BaseModel):
    """Settings for parsing and importing ticket spreadsheets."""

    model_config = ConfigDict(frozen=True)

    delimiters: List[str] = Field(
        default_factory=lambda: [",", "\t", "|", ";"],
        description="Candidate field delimiters, in preference order",
    )
    batch_size: int = Field(500, ge=1, description="Records per persistence call")
    column_aliases: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Extra header spellings, canonical field -> aliases",
    )

    @field_validator("delimiters")
    @classmethod
    def validate_delimiters(cls, v):
        """Each delimiter must be a single character."""
        if not v:
            raise ValueError("delimiters must not be empty")
        for d in v:
            if len(d) != 1:
                raise ValueError(f"delimiter {d!r} must be a single character")
        return v

    @field_validator("column_aliases")
    @classmethod
    def validate_alias_targets(cls, v):
        """Aliases must point at known ticket fields."""
        unknown = sorted(k for k in v if k not in TICKET_FIELDS)
        if unknown:
            raise ValueError(f"column_aliases reference unknown ticket fields: {unknown}")
        return v


class AnalyticsConfig(BaseModel):
    """Breakdown truncation limits."""

    model_config = ConfigDict(frozen=True)

    top_n_affiliates: int = Field(15, ge=1)
    top_n_default: int = Field(10, ge=1)


class AppConfig(BaseModel):
    """Complete TicketPulse configuration."""

    model_config = ConfigDict(frozen=True)

    paths: PathsConfig = Field(default_factory=PathsConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    services: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Highlighted category overrides per service key",
    )

    @field_validator("services")
    @classmethod
    def validate_service_keys(cls, v):
        """Only the known service keys can be overridden."""
        unknown = sorted(k for k in v if k not in SERVICE_KEYS)
        if unknown:
            raise ValueError(f"Unknown service keys: {unknown}. Expected one of {list(SERVICE_KEYS)}")
        return v


def validate_config(config_dict: Optional[dict]) -> AppConfig:
    """Validate a raw configuration mapping.

    Raises:
        pydantic.ValidationError (a ValueError) if the configuration is invalid.
    """
    return AppConfig(**(config_dict or {}))


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate a YAML configuration file; ``None`` yields defaults."""

    if path is None:
        return AppConfig()
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")
    with open(config_path, "r", encoding="utf-8") as stream:
        raw = yaml.safe_load(stream) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")
    return validate_config(raw)
