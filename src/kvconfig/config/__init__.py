"""Configuration system for kvconfig.

Provides strongly-typed configuration objects that can be loaded from:
- Environment variables
- YAML files
- Programmatic construction
"""

from .system import SystemConfig, parse_store_kind
from .providers import StoreConfig, StoreKind

__all__ = [
    "SystemConfig",
    "StoreConfig",
    "StoreKind",
    "parse_store_kind",
]
