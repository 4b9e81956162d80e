"""Type definitions for widget manifests and string catalogs.

This module defines TypedDict classes that mirror the JSON schema structure
defined in schemas/widget_manifest.schema.json and schemas/strings.schema.json.
"""

from typing import Any, Literal, TypedDict

StringState = Literal["new", "needs-review", "final"]
WidgetType = Literal["engagement", "interaction"]


class Asset(TypedDict, total=False):
    """Single file belonging to a widget.

    Only ``path`` is set by the scanner; ``hash`` is added by hashing and
    ``id``/``type``/``size`` come from the server.
    """

    path: str  # POSIX path relative to the widget root
    hash: str  # Lowercase hex SHA-256 of the content
    id: str  # Server-assigned identifier
    type: str  # Server-assigned MIME type
    size: int  # Server-assigned byte size


class StringValue(TypedDict):
    """Translation of a string in one language."""

    value: str
    state: StringState


class MultiLanguageString(TypedDict, total=False):
    """Translatable entry of a string catalog."""

    id: str  # Dotted key, e.g. "WIDGET.popup1.NAME"
    values: dict[str, StringValue]  # Language code -> translation
    description: str  # Context for translators


class WidgetManifest(TypedDict, total=False):
    """Descriptor of one widget version."""

    id: str
    type: WidgetType
    version: int
    draft: bool
    acct_id: str  # Absent for global widgets
    assets: list[Asset]
    stringIds: list[str]
    htmlId: str
    scssId: str
    thumbnailId: str
    variables: list[dict[str, Any]]


class Config(TypedDict, total=False):
    """Local credentials record."""

    server: str  # Server host name
    acct_id: str  # Account the client belongs to
    user_id: str  # API client id
    secret: str  # API client secret
    info: dict[str, Any]  # Server reflection data, never persisted
