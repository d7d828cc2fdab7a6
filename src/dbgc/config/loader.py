"""Configuration loading from dbgc.toml."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from dbgc.config.models import DatabaseProfile, DbgcConfig, SchemaSettings, SweepSettings

DEFAULT_CONFIG_FILE = "dbgc.toml"


def load_config(config_path: str | Path | None = None) -> DbgcConfig:
    """Load dbgc configuration from a TOML file.

    Relative ``schema.file`` and ``sweep.backup_root`` paths are resolved
    against the config file's directory.

    Args:
        config_path: Path to dbgc.toml (default: ./dbgc.toml)

    Returns:
        DbgcConfig with all profiles and settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid

    Example:
        >>> config = load_config("dbgc.toml")
        >>> config.sweep.page_size
        32768
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Create {DEFAULT_CONFIG_FILE} with at least one [profiles.<name>] table."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path.name}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        schema_settings = SchemaSettings(**data.get("schema", {}))
        sweep = SweepSettings(**data.get("sweep", {}))
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Invalid config in {config_path.name}: {e}") from e

    base_dir = config_path.parent
    if not Path(schema_settings.file).is_absolute():
        schema_settings.file = str(base_dir / schema_settings.file)
    if not Path(sweep.backup_root).is_absolute():
        sweep.backup_root = str(base_dir / sweep.backup_root)

    return DbgcConfig(profiles=profiles, schema_settings=schema_settings, sweep=sweep)
