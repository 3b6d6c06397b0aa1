"""Configuration for the account and position planes."""

from shared.config.utils import (
    CoreConfig,
    HierarchyConfig,
    LoggingConfig,
    ServiceConfig,
    ValidationConfig,
    get_config,
    logger_from_config,
    save_sample_config,
)

__all__ = [
    "CoreConfig",
    "HierarchyConfig",
    "LoggingConfig",
    "ServiceConfig",
    "ValidationConfig",
    "get_config",
    "logger_from_config",
    "save_sample_config",
]
