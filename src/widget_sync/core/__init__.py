"""Core utilities shared by the synchronization engine.

This package contains the wire types, error taxonomy, content hashing
and schema validation used by every command.
"""

from .errors import (
    InvariantViolation,
    LocalPreconditionError,
    TransportFailure,
    ValidationFailure,
    WidgetSyncError,
)
from .hashing import hash_bytes, hash_file
from .types import Asset, Config, MultiLanguageString, StringValue, WidgetManifest
from .validator import validate_manifest, validate_strings

__all__ = [
    "Asset",
    "Config",
    "MultiLanguageString",
    "StringValue",
    "WidgetManifest",
    "WidgetSyncError",
    "LocalPreconditionError",
    "InvariantViolation",
    "ValidationFailure",
    "TransportFailure",
    "hash_bytes",
    "hash_file",
    "validate_manifest",
    "validate_strings",
]
