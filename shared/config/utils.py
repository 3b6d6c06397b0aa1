"""
shared.config.utils: configuration loader for the core.

- YAML file (PyYAML) as the base layer
- Environment overrides (prefix + __ nesting), JSON-decoded values
- pydantic validation; strict mode raises, non-strict falls back to defaults
- Values are passed explicitly to the components that need them; nothing
  here is a process-wide registry
"""
from __future__ import annotations

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from shared.logging import StructuredLogger, init_structured_logger

logger = logging.getLogger(__name__)

# -----------------------
# Pydantic models
# -----------------------
class ServiceConfig(BaseModel):
    name: str = Field("copycore", description="Service name stamped on every log record")
    environment: str = Field("development", description="development / staging / production")


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    json_output: bool = Field(True, description="Emit JSON log records")

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        if not isinstance(getattr(logging, v.upper(), None), int):
            raise ValueError(f"unknown logging level: {v}")
        return v.upper()


class HierarchyConfig(BaseModel):
    enabled_links_only: bool = Field(
        False, description="Skip copier links whose 'enabled' flag is false when indexing relationships"
    )


class ValidationConfig(BaseModel):
    mode: str = Field("both", description="pydantic_only / json_schema_only / both")
    strict_mode: bool = Field(False, description="Raise instead of logging on invalid push payloads")

    @field_validator("mode")
    @classmethod
    def known_mode(cls, v: str) -> str:
        if v not in ("pydantic_only", "json_schema_only", "both"):
            raise ValueError("mode must be one of pydantic_only, json_schema_only, both")
        return v


class CoreConfig(BaseModel):
    schema_version: str = Field("0.1.0", description="Config schema version")
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    hierarchy: HierarchyConfig = Field(default_factory=HierarchyConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    @field_validator("schema_version")
    @classmethod
    def non_empty_version(cls, v):
        if not v or not isinstance(v, str):
            raise ValueError("schema_version must be a non-empty string")
        return v

# -----------------------
# constants
# -----------------------
DEFAULT_CONFIG_PATH = Path(os.environ.get("COPYCORE_CONFIG", "config/copycore.yaml"))
ENV_PREFIX = "CC_"

# -----------------------
# internal helpers: load yaml, env overrides, deep merge
# -----------------------
def _load_yaml_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug("config: %s not found; using defaults", path)
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config root in {path} must be a mapping, got {type(data).__name__}")
    return data


def _env_overrides(prefix: str = ENV_PREFIX, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Parse env vars with prefix, nesting via double-underscore.
    Example: CC_HIERARCHY__ENABLED_LINKS_ONLY=true -> {'hierarchy': {'enabled_links_only': True}}
    Values are JSON-decoded when possible.
    """
    environ = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    pref = prefix.upper()

    for k, v in environ.items():
        if not k.startswith(pref):
            continue
        parts = k[len(pref):].split("__")
        node = out
        for p in parts[:-1]:
            key = p.lower()
            if key not in node or not isinstance(node[key], dict):
                node[key] = {}
            node = node[key]
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError:
            parsed = v
        node[parts[-1].lower()] = parsed

    return out


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    res = dict(a)
    for k, v in b.items():
        if k in res and isinstance(res[k], dict) and isinstance(v, dict):
            res[k] = _deep_merge(res[k], v)
        else:
            res[k] = v
    return res

# -----------------------
# public API
# -----------------------
def get_config(
    path: Optional[str] = None,
    env_prefix: str = ENV_PREFIX,
    strict: bool = False,
    environ: Optional[Dict[str, str]] = None,
) -> CoreConfig:
    """Load configuration: YAML, then env overrides, then validation.

    Args:
        path: YAML file path (default: $COPYCORE_CONFIG or config/copycore.yaml)
        env_prefix: Prefix for environment overrides
        strict: Raise on validation errors instead of returning defaults
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated CoreConfig

    Raises:
        ValidationError: If validation fails and strict is True
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    try:
        yaml_map = _load_yaml_file(cfg_path)
    except (yaml.YAMLError, ValueError) as e:
        logger.error("Config file %s unreadable: %s", cfg_path, e)
        if strict:
            raise
        yaml_map = {}

    merged = _deep_merge(yaml_map, _env_overrides(prefix=env_prefix, environ=environ))

    try:
        return CoreConfig.model_validate(merged)
    except ValidationError as ve:
        logger.error("Config validation error: %s", ve)
        if strict:
            raise
        logger.warning("Returning default CoreConfig due to validation errors (non-strict).")
        return CoreConfig()


def logger_from_config(cfg: CoreConfig, plane: str) -> StructuredLogger:
    """Structured logger for one plane, configured from ``cfg``."""
    return init_structured_logger(
        f"{cfg.service.name}.{plane}",
        environment=cfg.service.environment,
        level=getattr(logging, cfg.logging.level),
        json_output=cfg.logging.json_output,
    )


def save_sample_config(path: str, overwrite: bool = False) -> Path:
    """Write the default configuration as YAML."""
    target = Path(path)
    if target.exists() and not overwrite:
        return target
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(CoreConfig().model_dump(), fh, sort_keys=False)
    return target
