"""Configuration module for HomeNet.

Provides centralized constants, logging, exceptions, and subprocess helpers.
"""
from config.constants import (
    ALLOWED_SUBPROCESS_COMMANDS,
    GATEKEEPER,
    INTERVALS,
    NETWORK,
    STORAGE,
    WOL,
    GatekeeperConfig,
    Intervals,
    NetworkConfig,
    StorageConfig,
    WakeOnLanConfig,
)
from config.exceptions import (
    ConfigurationError,
    GatekeeperError,
    HomeNetError,
    ScannerError,
    StorageError,
    SubprocessError,
    UpstreamError,
    WakeOnLanError,
)
from config.logging_config import LogContext, get_logger, log_exception, setup_logging

__all__ = [
    # Constants
    "INTERVALS",
    "NETWORK",
    "GATEKEEPER",
    "STORAGE",
    "WOL",
    "Intervals",
    "NetworkConfig",
    "GatekeeperConfig",
    "StorageConfig",
    "WakeOnLanConfig",
    "ALLOWED_SUBPROCESS_COMMANDS",
    # Exceptions
    "HomeNetError",
    "ScannerError",
    "StorageError",
    "ConfigurationError",
    "GatekeeperError",
    "UpstreamError",
    "WakeOnLanError",
    "SubprocessError",
    # Logging
    "setup_logging",
    "get_logger",
    "log_exception",
    "LogContext",
]
