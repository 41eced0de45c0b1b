"""Configuration loading from environment variables and contactbook.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".contactbook"
_CONFIG_FILENAME = "contactbook.toml"


@dataclass
class Config:
    """Top-level contactbook configuration."""

    data_file: Path = _DEFAULT_HOME / "contacts.xml"
    export_dir: Path = _DEFAULT_HOME / "cards"
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from environment variables and optional contactbook.toml.

    Priority: environment variables > contactbook.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.contactbook/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_HOME / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    defaults = Config()
    data_file = os.getenv("CONTACTBOOK_DATA_FILE", file_data.get("data_file"))
    export_dir = os.getenv("CONTACTBOOK_EXPORT_DIR", file_data.get("export_dir"))
    return Config(
        data_file=Path(data_file).expanduser() if data_file else defaults.data_file,
        export_dir=Path(export_dir).expanduser() if export_dir else defaults.export_dir,
        log_level=os.getenv("CONTACTBOOK_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
