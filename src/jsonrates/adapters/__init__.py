# src/jsonrates/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains adapters for external systems:
- Providers (rate-quoting APIs)
"""

__all__ = []
