"""Reading and writing the JSON documents of a widget directory."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .core.errors import LocalPreconditionError

DEFAULT_JSON_INDENT = 2


def load_json_file(file_path: Path, label: str | None = None) -> Any:
    """Load a JSON document.

    Args:
        file_path: File to read
        label: Name used in error messages (defaults to the file name)

    Raises:
        LocalPreconditionError: If the file is missing, unreadable or not valid JSON
    """
    file_path = Path(file_path)
    label = label or file_path.name
    try:
        with file_path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise LocalPreconditionError(f"{label} not found", cause=e) from e
    except OSError as e:
        raise LocalPreconditionError(f"{label} not readable: {e}", cause=e) from e
    except json.JSONDecodeError as e:
        raise LocalPreconditionError(f"Failed to parse {label}: {e}", cause=e) from e


def save_json_file(file_path: Path, data: Any, indent: int = DEFAULT_JSON_INDENT) -> None:
    """Write a JSON document atomically.

    The data goes to a temporary file in the same directory which then
    replaces the target, so a crash never leaves a truncated document.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=indent)
            f.write("\n")
        os.replace(tmp_name, file_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_catalog_file(file_path: Path) -> list[dict[str, Any]]:
    """Load a string catalog (JSON array of strings).

    Raises:
        LocalPreconditionError: If the file can't be loaded or isn't an array
    """
    data = load_json_file(file_path)
    if not isinstance(data, list):
        raise LocalPreconditionError(f"{Path(file_path).name} is not a list of strings")
    return data


def save_catalog_file(file_path: Path, strings: list[dict[str, Any]]) -> None:
    """Write a string catalog.

    Raises:
        LocalPreconditionError: If ``strings`` isn't a list
    """
    if not isinstance(strings, list):
        raise LocalPreconditionError(f"{Path(file_path).name}: a catalog must be a list of strings")
    save_json_file(file_path, strings)
