"""Pydantic models for dbgc configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class DatabaseProfile(BaseModel):
    """Database connection profile from dbgc.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class SchemaSettings(BaseModel):
    """Where the declared schema comes from."""

    source: Literal["file", "introspect"] = "file"
    file: str = "schema.toml"
    db_schema: str = "public"  # PostgreSQL schema introspected and swept (search_path)


class SweepSettings(BaseModel):
    """Sweep tuning and backup location."""

    page_size: int = 32 * 1024
    backup_root: str = "dbgc"
    table_prefix: str = ""
    id_field: str = "id"


class DbgcConfig(BaseModel):
    """Complete configuration from dbgc.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    schema_settings: SchemaSettings = Field(default_factory=SchemaSettings)
    sweep: SweepSettings = Field(default_factory=SweepSettings)
