"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from dbgc.config import load_config, DatabaseProfile, DbgcConfig
"""

from dbgc.config.loader import load_config
from dbgc.config.models import DatabaseProfile, DbgcConfig, SchemaSettings, SweepSettings

__all__ = ["load_config", "DbgcConfig", "DatabaseProfile", "SchemaSettings", "SweepSettings"]
