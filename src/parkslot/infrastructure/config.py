# File: src/parkslot/infrastructure/config.py
"""
Configuration and logging setup

Configuration is read from a YAML file and validated with pydantic:

    logging:
      level: INFO
      file: logs/parkslot.log
    lots:
      - category: standard
        capacity: 10
        billing:
          policy: tiered
      - category: 50kW
        capacity: 4
        billing:
          policy: hourly
          params: {rate: "1.5"}

Lookup order for the file: explicit path, then $PARKSLOT_CONFIG, then the
built-in defaults. $PARKSLOT_LOG_LEVEL overrides the configured level.
"""

from pathlib import Path
from typing import Dict, List, Optional, Any, Union
import logging
import os
import sys

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.models import LotCategory
from ..domain.strategies import BillingPolicy, BillingPolicyFactory


CONFIG_ENV_VAR = "PARKSLOT_CONFIG"
LOG_LEVEL_ENV_VAR = "PARKSLOT_LOG_LEVEL"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ConfigurationError(Exception):
    """Raised when the configuration file is missing or invalid"""
    pass


# ============================================================================
# CONFIGURATION MODELS
# ============================================================================

class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO")
    format: str = Field(default=DEFAULT_LOG_FORMAT)
    file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class BillingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    policy: str = Field(description="Policy name understood by BillingPolicyFactory")
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        if v.lower() not in BillingPolicyFactory.available():
            raise ValueError(
                f"Unknown billing policy {v!r}. Available: {', '.join(BillingPolicyFactory.available())}"
            )
        return v.lower()

    def build(self) -> BillingPolicy:
        return BillingPolicyFactory.create(self.policy, **self.params)


class LotConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str = Field(description="standard, 20kW or 50kW")
    capacity: int = Field(ge=1, description="Number of slots")
    billing: Optional[BillingConfig] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return LotCategory.parse(v).value


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    lots: List[LotConfig] = Field(default_factory=list)


# ============================================================================
# LOADING
# ============================================================================

def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load and validate configuration
    Raises: ConfigurationError if the file cannot be read or is invalid
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)

    data: Dict[str, Any] = {}
    if path:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    level_override = os.environ.get(LOG_LEVEL_ENV_VAR)
    if level_override:
        try:
            config.logging = LoggingConfig(
                level=level_override,
                format=config.logging.format,
                file=config.logging.file
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {LOG_LEVEL_ENV_VAR}: {level_override}") from e

    return config


# ============================================================================
# LOGGING
# ============================================================================

def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure root logging once for the application"""
    config = config or LoggingConfig()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, config.level),
        format=config.format,
        handlers=handlers,
        force=True
    )
    return logging.getLogger("parkslot")
