# src/jsonrates/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Logging configuration
"""

from jsonrates.shared.validators import (
    validate_api_key,
)
from jsonrates.shared.logging_conf import setup_logging

__all__ = [
    "validate_api_key",
    "setup_logging",
]
