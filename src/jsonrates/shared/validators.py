# src/jsonrates/shared/validators.py
"""
Input Validation Utilities - Credential Checks

This module provides small validation predicates for configuration and
caller input.

Files that USE this module:
- jsonrates.config.settings (validates the API key in a field validator)
- jsonrates.adapters.providers.jsonrates (checks the API key before any request)

Files that this module USES:
- None (pure utility functions)
"""
from typing import Optional


def validate_api_key(api_key: Optional[str]) -> bool:
    """
    Validate that an API key is present.

    Args:
        api_key: API key to validate

    Returns:
        True if the key is a non-blank string, False otherwise
    """
    if not api_key:
        return False

    return isinstance(api_key, str) and not api_key.isspace()

