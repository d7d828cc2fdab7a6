"""Declared-schema file source.

Reads a schema declaration from TOML (default) or JSON.  The file is
re-read on every ``list_tables()`` call.

Example ``schema.toml``:

    [[tables]]
    name = "posts"
    fields = ["id", "author_id", "title"]

    [[tables.keys]]
    name = "author"
    type = "foreign"
    fields = ["author_id"]
    reftable = "users"
    reffields = ["id"]
"""

import json
import tomllib
from pathlib import Path

from pydantic import ValidationError

from dbgc.errors import StorageError
from dbgc.schema.models import SchemaDef, TableDef


def load_schema_file(schema_file: str | Path) -> SchemaDef:
    """Load a schema declaration file.

    Args:
        schema_file: Path to a ``.toml`` or ``.json`` schema declaration.

    Returns:
        Parsed ``SchemaDef``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be parsed or does not describe a
            valid schema.
    """
    path = Path(schema_file)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(path.read_text())
        else:
            with open(path, "rb") as f:
                data = tomllib.load(f)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ValueError(f"Invalid schema file {path.name}: {e}") from e

    try:
        return SchemaDef.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid schema in {path.name}: {e}") from e


class FileSchemaSource:
    """Schema source reading a declaration file on every call.

    Args:
        schema_file: Path to the schema declaration.
    """

    def __init__(self, schema_file: str | Path):
        self.schema_file = Path(schema_file)

    def list_tables(self) -> list[TableDef]:
        """Load and return the declared tables.

        Raises:
            StorageError: If the file is missing or malformed.
        """
        try:
            return load_schema_file(self.schema_file).tables
        except (FileNotFoundError, ValueError) as e:
            raise StorageError(f"Failed to load schema: {e}") from e
