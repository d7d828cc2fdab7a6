"""Collector factory.

Resolves a database profile from dbgc.toml and wires storage, schema
source and backup settings into a ``GarbageCollector``.

Profile resolution priority:
1. Explicit profile name (e.g. ``--profile`` on the CLI)
2. ``{env_prefix}DBGC_PROFILE`` environment variable
3. Raise ProfileNotFoundError

Usage:
    from dbgc.config import load_config
    from dbgc.factory import create_collector

    config = load_config("dbgc.toml")
    collector = create_collector(config, "local")
    print(collector.report().total_orphans)
"""

import logging
import os
from collections.abc import Callable
from urllib.parse import quote

from dbgc.adapters.sql import SqlStorage, normalize_url
from dbgc.collector import GarbageCollector
from dbgc.config.models import DatabaseProfile, DbgcConfig
from dbgc.errors import ProfileNotFoundError
from dbgc.progress import Progress
from dbgc.schema.index import SchemaSource
from dbgc.schema.introspector import IntrospectedSchemaSource
from dbgc.schema.loader import FileSchemaSource

logger = logging.getLogger(__name__)


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(
    profile_name: str | None = None, env_prefix: str = ""
) -> str:
    """Get the profile to use.

    Args:
        profile_name: Explicit profile name; wins when given.
        env_prefix: Prefix for the environment variable lookup
            (``--env-prefix APP_`` reads ``APP_DBGC_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    if profile_name:
        return profile_name

    env_profile = os.environ.get(f"{env_prefix}DBGC_PROFILE")
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Pass --profile <name> or set {env_prefix}DBGC_PROFILE=<name>"
    )


def get_profile(config: DbgcConfig, profile_name: str) -> DatabaseProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile is not in the config.
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found. Available: {available}"
        )
    return config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Construction
# ============================================================================


def get_schema_source(config: DbgcConfig, database_url: str) -> SchemaSource:
    """Build the schema source named by ``[schema] source``."""
    settings = config.schema_settings
    if settings.source == "introspect":
        return IntrospectedSchemaSource(database_url, schema_name=settings.db_schema)
    return FileSchemaSource(settings.file)


def get_storage(config: DbgcConfig, database_url: str) -> SqlStorage:
    """Build the storage for a profile URL.

    On PostgreSQL a ``[schema] db_schema`` other than ``public`` becomes the
    connection's ``search_path``, so unqualified table names in orphan
    queries resolve to the schema that was introspected.
    """
    db_schema = config.schema_settings.db_schema
    if db_schema != "public" and normalize_url(database_url).startswith("postgresql"):
        return SqlStorage(
            database_url, connect_args={"options": f"-csearch_path={db_schema}"}
        )
    return SqlStorage(database_url)


def create_collector(
    config: DbgcConfig,
    profile_name: str,
    progress: Progress | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> GarbageCollector:
    """Create a ``GarbageCollector`` for a configured profile.

    Args:
        config: Loaded configuration.
        profile_name: Profile from ``config.profiles``.
        progress: Optional progress sink.
        should_cancel: Optional cancellation hook checked between
            foreign keys.

    Returns:
        Ready-to-run collector.  Call ``collector.storage.close()`` when
        done.

    Raises:
        ProfileNotFoundError: If the profile does not exist.
    """
    profile = get_profile(config, profile_name)
    url = resolve_url(profile)
    sweep = config.sweep

    logger.debug(
        f"Creating collector for profile {profile_name} "
        f"(schema source: {config.schema_settings.source})"
    )
    return GarbageCollector(
        schema=get_schema_source(config, url),
        storage=get_storage(config, url),
        backup_root=sweep.backup_root,
        progress=progress,
        page_size=sweep.page_size,
        table_prefix=sweep.table_prefix,
        id_field=sweep.id_field,
        should_cancel=should_cancel,
    )
