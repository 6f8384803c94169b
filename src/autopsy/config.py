"""
Configuration management for autopsy

Provides pydantic-based configuration with environment variable support
and YAML file loading capabilities.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .observability.config import TelemetryConfig


class StoreConfig(BaseModel):
    """Persistence backend configuration"""

    backend: str = "memory"  # "memory" or "local"
    path: str = ".autopsy/store.json"


class TriageConfig(BaseModel):
    """Triage engine configuration"""

    agent: str = "heuristic"


class StatusPageConfig(BaseModel):
    """Public status page settings"""

    default_period_hours: int = Field(default=24, ge=1)
    max_period_hours: int = Field(default=24 * 30, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> "StatusPageConfig":
        if self.default_period_hours > self.max_period_hours:
            raise ValueError("default_period_hours cannot exceed max_period_hours")
        return self


class AutopsyConfig(BaseSettings):
    """Main autopsy configuration"""

    model_config = SettingsConfigDict(
        env_prefix="AUTOPSY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    store: StoreConfig = Field(default_factory=StoreConfig)
    triage: TriageConfig = Field(default_factory=TriageConfig)
    status_page: StatusPageConfig = Field(default_factory=StatusPageConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig.from_env)

    log_level: str = "INFO"

    @classmethod
    def load_from_file(cls, config_path: str = "autopsy.yml") -> "AutopsyConfig":
        """Load configuration from a YAML file; a missing file yields defaults"""
        config_file = Path(config_path)
        config_data = {}

        if config_file.exists():
            with open(config_file, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        return cls(**config_data)


_config: Optional[AutopsyConfig] = None


def get_config() -> AutopsyConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = AutopsyConfig.load_from_file()
    return _config


def set_config(config: Optional[AutopsyConfig]) -> None:
    """Set (or with None, reset) the global configuration instance"""
    global _config
    _config = config
