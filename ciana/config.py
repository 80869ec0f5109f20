"""
Persisted configuration — the ``.cianarc`` dotfile.

The file holds a single line: the directory that contains the project's
compilation database (``compile_commands.json``). Relative paths are taken
relative to the dotfile's own directory, which is the working directory in
the usual case of a dotfile at the project root.
"""

import logging
import os

from pydantic import BaseModel, ValidationError, field_validator

from ciana.errors import ConfigMissingError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".cianarc"


class CianaConfig(BaseModel):
    """Validated contents of the dotfile."""
    compilation_database: str     # absolute directory path once loaded
    source: str = ""              # the dotfile it was read from

    @field_validator("compilation_database")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("compilation database path is empty")
        return value


def load_config(path: str = DEFAULT_CONFIG_FILE) -> CianaConfig:
    """Read and validate the dotfile at ``path``.

    Raises:
        ConfigMissingError: the file is absent, unreadable or empty.
    """
    if not os.path.isfile(path):
        raise ConfigMissingError(f"configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigMissingError(f"cannot read configuration file {path}: {e}") from e

    try:
        config = CianaConfig(compilation_database=text, source=path)
    except ValidationError as e:
        raise ConfigMissingError(f"{path} does not name a compilation database directory") from e

    if not os.path.isabs(config.compilation_database):
        base = os.path.dirname(os.path.abspath(path))
        config.compilation_database = os.path.normpath(
            os.path.join(base, config.compilation_database)
        )

    logger.info("Compilation database directory: %s", config.compilation_database)
    return config
