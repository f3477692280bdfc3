"""
Core utilities and configuration for txn-testkit.

This package provides core functionality including settings, logging
configuration and database engine helpers.
"""

from txn_testkit.core.config import Settings, get_settings
from txn_testkit.core.logging_config import get_logger, setup_logging

__all__ = ["Settings", "get_logger", "get_settings", "setup_logging"]
