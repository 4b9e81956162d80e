"""Widget Sync - command-line client for the widget service.

This package scans widget directories, detects which assets and strings
changed since the last push, uploads only those, and converts string
catalogs to and from PO files for translators.
"""

__version__ = "0.1.0"

# Core library interface
from .pipeline import SyncPolicy, WidgetPipeline
from .sync import UploadCoordinator
from .client import WidgetServiceClient
from .config import ConfigStore

# Engine
from .scanner import hash_widget_assets, list_files, scan_widget_assets
from .diff import diff_assets, diff_strings
from .bridge import export_catalog_files, import_catalog_files

# Core utilities
from .core import Asset, MultiLanguageString, WidgetManifest, hash_file
from .core import (
    InvariantViolation,
    LocalPreconditionError,
    TransportFailure,
    ValidationFailure,
    WidgetSyncError,
)

# CLI
from .cli import main

__all__ = [
    # Primary library interface
    "WidgetPipeline",
    "SyncPolicy",
    "UploadCoordinator",
    "WidgetServiceClient",
    "ConfigStore",
    # Engine
    "scan_widget_assets",
    "hash_widget_assets",
    "list_files",
    "diff_assets",
    "diff_strings",
    "export_catalog_files",
    "import_catalog_files",
    # Core utilities
    "Asset",
    "MultiLanguageString",
    "WidgetManifest",
    "hash_file",
    "WidgetSyncError",
    "LocalPreconditionError",
    "InvariantViolation",
    "ValidationFailure",
    "TransportFailure",
    "main",
]
