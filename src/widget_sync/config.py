"""Local credentials storage.

The config record lives in ``~/.vvc/config.json`` (or the file named by
the ``WIDGET_SYNC_CONFIG`` environment variable). A ConfigStore is created
once by the CLI and handed to everything that needs the credentials.
"""

import json
import os
from pathlib import Path

from .core.errors import LocalPreconditionError
from .core.types import Config
from .files import save_json_file

CONFIG_ENV_VAR = "WIDGET_SYNC_CONFIG"
DEFAULT_CONFIG_DIR = ".vvc"
CONFIG_FILE_NAME = "config.json"

# Fields that only make sense for the running process
TRANSIENT_FIELDS = ("info",)


def default_config_path() -> Path:
    """Resolve the config file location."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_CONFIG_DIR / CONFIG_FILE_NAME


class ConfigStore:
    """Read/write access to the config file, with an in-memory copy.

    Example:
        >>> store = ConfigStore()
        >>> config = store.read()
        >>> config["server"]
        'www.example.com'
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else default_config_path()
        self._config: Config | None = None

    def read(self) -> Config:
        """Return the config, loading it on first use.

        Raises:
            LocalPreconditionError: If the file is missing or malformed
        """
        if self._config is None:
            self._config = self._load()
        return self._config

    def reload(self) -> Config:
        """Discard the in-memory copy and read the file again."""
        self._config = None
        return self.read()

    def _load(self) -> Config:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise LocalPreconditionError("Config file not found, perform a login to create it", cause=e) from e
        except (OSError, json.JSONDecodeError) as e:
            raise LocalPreconditionError(f"Failed to read config file {self.path}: {e}", cause=e) from e

        if not isinstance(data, dict):
            raise LocalPreconditionError(f"Malformed config file {self.path}")
        return Config(**data)  # type: ignore[typeddict-item]

    def write(self, config: Config) -> Config:
        """Persist a config record, creating the config directory if needed.

        Raises:
            NotADirectoryError: If the config directory path is taken by a file
        """
        config_dir = self.path.parent
        if config_dir.exists() and not config_dir.is_dir():
            raise NotADirectoryError(f"{config_dir} is not a directory")
        config_dir.mkdir(parents=True, exist_ok=True)

        persisted = {k: v for k, v in config.items() if k not in TRANSIENT_FIELDS}
        # mkstemp creates the file owner-only (0600) before the secret is written
        save_json_file(self.path, persisted)

        self._config = config
        return config

    def unlink(self) -> None:
        """Remove the config file; a missing file is not an error."""
        self.path.unlink(missing_ok=True)
        self._config = None
