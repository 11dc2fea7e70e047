"""
Core Infrastructure - Configuration, Logging, Query Tracking

This package provides centralized infrastructure utilities that should be used
throughout the data source instead of direct library calls.

Usage:
    from appcenter_datasource.core import get_config, get_logger

    config = get_config().get_datasource_config()
    logger = get_logger(__name__)
"""

from appcenter_datasource.core.logging_config import get_logger, log_with_context, setup_logging
from appcenter_datasource.core.query_metrics import QueryMetricsTracker, get_current_tracker, track_query
from appcenter_datasource.secure_config import (
    ConfigurationError,
    DataSourceConfig,
    DataSourceSettings,
    SecureConfig,
    get_config,
)

__all__ = [
    # Configuration
    "get_config",
    "ConfigurationError",
    "DataSourceConfig",
    "DataSourceSettings",
    "SecureConfig",
    # Logging
    "get_logger",
    "log_with_context",
    "setup_logging",
    # Query tracking
    "QueryMetricsTracker",
    "get_current_tracker",
    "track_query",
]
