"""
functions/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single source of truth* for runtime configuration
of the Meal Analysis Diagnostics API.

It is responsible for:
- Defining all supported configuration fields (via Pydantic BaseSettings)
- Loading default values from parameters/parameters.yaml
- Overriding defaults with environment variables (MEAL_DIAG_*)
- Validating settings and failing fast on bad values
- Exposing a cached, fully-validated Settings object to the application

LOAD & PRECEDENCE MODEL
-----------------------
Configuration is loaded in the following order (last wins):

1) YAML defaults from:
       parameters/parameters.yaml
2) Environment variables:
       MEAL_DIAG_*

WHAT THIS FILE IS NOT FOR
-------------------------
The Firebase credential variables (FIREBASE_PRIVATE_KEY, ...) are NOT
settings. They are the *subject* of the diagnostics and are captured per
request as a ConfigSnapshot (functions/diagnostics/config_snapshot.py),
so a diagnostics call always sees the live environment, never a cached copy.

STACK TRACE EXPOSURE
--------------------
Initialization errors in the diagnostics report may include a stack trace.
By default this is enabled everywhere except environment="production".
`expose_stack_traces` overrides the default explicitly when set.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Set

import structlog
import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"

KNOWN_ENVIRONMENTS = {"local", "development", "test", "staging", "production"}


class Settings(BaseSettings):
    """
    Runtime settings for the Meal Analysis Diagnostics API.

    Load order / precedence:
        1) YAML defaults (parameters/parameters.yaml)
        2) Environment variables (MEAL_DIAG_*), overriding YAML
    """

    model_config = SettingsConfigDict(
        env_prefix="MEAL_DIAG_",
        extra="ignore",
    )

    # Service metadata
    service_name: str = "meal_analysis_diagnostics"
    environment: str = "local"
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # Diagnostics
    expose_stack_traces: Optional[bool] = Field(
        default=None,
        description=(
            "Force stack traces on/off in initialization errors. "
            "When unset, traces are included unless environment is 'production'."
        ),
    )

    # Response JSON normalization
    preserve_container_keys: Set[str] = Field(
        default_factory=lambda: {"found"},
        description=(
            "Container keys whose *inner dict keys* must be preserved (not camelCased) "
            "during response normalization. `found` is keyed by raw env var names."
        ),
    )

    @field_validator("environment")
    @classmethod
    def _check_environment(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in KNOWN_ENVIRONMENTS:
            raise ValueError(f"environment must be one of {sorted(KNOWN_ENVIRONMENTS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"unknown log level: {v}")
        return v

    @property
    def include_stack_traces(self) -> bool:
        if self.expose_stack_traces is not None:
            return self.expose_stack_traces
        return self.environment != "production"


@lru_cache(maxsize=1)
def _load_yaml_parameters() -> Dict[str, Any]:
    """
    Load base configuration from parameters/parameters.yaml.

    Cached to avoid repeated disk I/O.
    """
    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", expected=str(PARAMETERS_PATH))
        return {}

    try:
        with PARAMETERS_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(
                "parameters_yaml_not_dict",
                path=str(PARAMETERS_PATH),
                type=type(data).__name__,
            )
            return {}
        logger.info("parameters_yaml_loaded", path=str(PARAMETERS_PATH))
        return data
    except Exception as exc:  # noqa: BLE001
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        return {}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct and return the final validated Settings object.

    Cached (singleton per process). Any code needing configuration should
    call this function, not instantiate Settings() directly.
    """
    yaml_data = _load_yaml_parameters()

    try:
        env_settings = Settings()
        env_data = env_settings.model_dump(exclude_unset=True)
        logger.info("settings_loaded_env_only_partial", fields=list(env_data.keys()))
    except ValidationError as exc:
        logger.warning("settings_env_validation_error", errors=exc.errors())
        env_data = {}

    merged: Dict[str, Any] = {**yaml_data, **env_data}

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()})
        logger.error("settings_invalid", fields=fields, yaml_path=str(PARAMETERS_PATH))
        raise RuntimeError(
            f"Invalid settings: {', '.join(fields)}. "
            "Fix them in environment variables (MEAL_DIAG_*) "
            f"or in {PARAMETERS_PATH}."
        ) from exc

    logger.info(
        "settings_loaded",
        environment=settings.environment,
        service_name=settings.service_name,
        log_level=settings.log_level,
        include_stack_traces=settings.include_stack_traces,
        preserve_container_keys=sorted(settings.preserve_container_keys),
    )

    return settings
