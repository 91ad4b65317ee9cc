"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="sla-tracker", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== SLA Settings Store ==========
    sla_settings_path: Path = Field(
        default=Path("sla_settings.yaml"),
        description="Path to the persisted SLA settings YAML file"
    )
    watch_settings_file: bool = Field(
        default=True,
        description="Reload SLA settings when the YAML file changes on disk"
    )

    # ========== Issue Tracker ==========
    jira_project_key: str = Field(
        default="SD",
        description="Default tracked project key"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Priority(str, Enum):
    """Canonical SLA priority levels."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SLAState(str, Enum):
    """SLA status states."""
    ON_TRACK = "on-track"
    AT_RISK = "at-risk"
    BREACHED = "breached"
    MET = "met"

    @property
    def severity(self) -> int:
        """Rank used to pick the worse of two states."""
        return SLA_STATE_SEVERITY[self]


class StatusCategory(str, Enum):
    """Tracker-independent issue status categories."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class AlertType(str, Enum):
    """SLA alert types."""
    WARNING = "warning"
    BREACH = "breach"


class SLAType(str, Enum):
    """SLA clock an alert refers to; overall alerts carry none."""
    RESPONSE = "response"


# ========== Lookup tables ==========

# Tracker priority labels -> canonical levels (keys lowercase)
PRIORITY_MAPPING: Dict[str, Priority] = {
    "highest": Priority.CRITICAL,
    "critical": Priority.CRITICAL,
    "high": Priority.HIGH,
    "medium": Priority.MEDIUM,
    "low": Priority.LOW,
    "lowest": Priority.LOW,
}

# Jira statusCategory keys -> StatusCategory
STATUS_CATEGORY_KEYS: Dict[str, StatusCategory] = {
    "new": StatusCategory.TODO,
    "undefined": StatusCategory.TODO,
    "indeterminate": StatusCategory.IN_PROGRESS,
    "done": StatusCategory.DONE,
}

# Raw status names treated as terminal regardless of category (lowercase)
RESOLVED_STATUS_NAMES = frozenset({"done", "resolved", "closed"})

SLA_STATE_SEVERITY: Dict[SLAState, int] = {
    SLAState.BREACHED: 4,
    SLAState.AT_RISK: 3,
    SLAState.MET: 2,
    SLAState.ON_TRACK: 1,
}

AT_RISK_THRESHOLD_PERCENT = 75.0
BREACH_THRESHOLD_PERCENT = 100.0

FALLBACK_PRIORITY = Priority.MEDIUM

