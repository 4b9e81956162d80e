"""Widget directory scanning and asset hashing.

This module turns a widget directory into the list of assets that make up
the widget, and computes the content hash of each of them.
"""

import os
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from .core.errors import LocalPreconditionError
from .core.hashing import hash_file
from .core.types import Asset

HTML_FILE = "main.html"
SCSS_FILE = "main.scss"
THUMBNAIL_FILE = "thumbnail.png"
ASSETS_DIR = "assets"

# Upper bound for concurrent stat/hash operations
MAX_WORKERS = 8


def validate_path_safety(path: Path, base_dir: Path) -> None:
    """Validate that a path stays within the base directory.

    This prevents path traversal attacks.

    Args:
        path: Path to validate
        base_dir: Base directory that path must be within

    Raises:
        ValueError: If path escapes the base directory
    """
    resolved_path = path.resolve()
    resolved_base = base_dir.resolve()

    if not resolved_path.is_relative_to(resolved_base):
        raise ValueError(f"Path {path} escapes base directory {base_dir}")


def list_files(path: Path) -> list[Path]:
    """Recursively list the regular files under a path.

    Hidden files and directories (dot-prefixed) are skipped at every level.
    A path pointing to a regular file yields that file alone.

    Args:
        path: Directory (or file) to list

    Returns:
        Paths of the files found, sorted

    Raises:
        FileNotFoundError: If path doesn't exist
    """
    path = Path(path)
    if path.is_file():
        return [path]
    if not path.is_dir():
        raise FileNotFoundError(f"No such file or directory: {path}")

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(path):
        # Prune hidden directories so os.walk doesn't descend into them
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for filename in filenames:
            if filename.startswith("."):
                continue
            file_path = Path(dirpath) / filename
            if file_path.is_file():
                files.append(file_path)

    return sorted(files)


def _is_readable_file(file_path: Path) -> bool:
    return file_path.is_file() and os.access(file_path, os.R_OK)


def check_asset(root: Path, file_path: Path) -> Asset:
    """Build the path-only asset for a file of the widget.

    Args:
        root: Widget root directory
        file_path: File to check

    Returns:
        Asset with the POSIX path relative to root

    Raises:
        LocalPreconditionError: If the file is missing, unreadable or not a regular file
        ValueError: If the file resolves outside root
    """
    if not _is_readable_file(file_path):
        relative = file_path.relative_to(root) if file_path.is_relative_to(root) else file_path
        raise LocalPreconditionError(f"{relative.as_posix()} not found or not readable")

    validate_path_safety(file_path, root)
    return Asset(path=file_path.relative_to(root).as_posix())


def _scan_assets_dir(root: Path) -> list[Asset]:
    assets_dir = root / ASSETS_DIR
    if not assets_dir.exists():
        return []
    # Unreadable files under assets/ are skipped like missing ones
    return [check_asset(root, f) for f in list_files(assets_dir) if _is_readable_file(f)]


def scan_widget_assets(root: Path) -> list[Asset]:
    """Scan a widget directory and collect its assets (paths only).

    ``main.html`` and ``main.scss`` are mandatory, ``thumbnail.png`` is
    optional and every readable file under ``assets/`` is included; an
    unreadable optional file is left out as if it were missing. The fixed file
    checks and the walk of ``assets/`` run concurrently.

    Args:
        root: Widget root directory

    Returns:
        Assets in order: main.html, main.scss, thumbnail.png (if any), assets/...

    Raises:
        LocalPreconditionError: If a mandatory file is missing or unreadable
    """
    root = Path(root).resolve()

    with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        html: Future[Asset] = executor.submit(check_asset, root, root / HTML_FILE)
        scss: Future[Asset] = executor.submit(check_asset, root, root / SCSS_FILE)
        thumb: Future[Asset] = executor.submit(check_asset, root, root / THUMBNAIL_FILE)
        tree: Future[list[Asset]] = executor.submit(_scan_assets_dir, root)

        assets = [html.result(), scss.result()]
        try:
            assets.append(thumb.result())
        except LocalPreconditionError:
            pass
        assets.extend(tree.result())

    return assets


def hash_widget_assets(root: Path, assets: list[Asset]) -> list[Asset]:
    """Compute the content hash of every asset.

    Args:
        root: Widget root directory the asset paths are relative to
        assets: Assets to hash

    Returns:
        New asset records with ``path`` and ``hash``, in the input order

    Raises:
        OSError: If a file disappears or can't be read while hashing
    """
    root = Path(root)

    def _hash(asset: Asset) -> Asset:
        return Asset(path=asset["path"], hash=hash_file(root / asset["path"]))

    with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        return list(executor.map(_hash, assets))
