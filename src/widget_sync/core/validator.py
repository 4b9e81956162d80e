"""JSON Schema validation for widget manifests and string catalogs.

Schemas are normally fetched from the widget service (``schemas/<name>``)
so that the client always validates against the server's current rules.
The bundled copies in ``widget_sync/schemas`` are used when no remote
schema is supplied.
"""

import json
from pathlib import Path
from typing import Any, Callable

import jsonschema
from jsonschema import SchemaError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT7
from referencing.exceptions import Unresolvable

from .errors import ValidationFailure
from .types import MultiLanguageString, WidgetManifest

# widget_sync/core/validator.py -> widget_sync/schemas/
SCHEMA_DIR = Path(__file__).parent.parent / "schemas"

# A string catalog always carries at least NAME and DESCRIPTION
MIN_CATALOG_ITEMS = 2


def load_schema(name: str) -> dict[str, Any]:
    """Load a bundled JSON schema.

    Args:
        name: Schema name, e.g. "strings" or "widget_manifest"

    Returns:
        Dictionary containing the JSON Schema.

    Raises:
        FileNotFoundError: If schema file doesn't exist
        json.JSONDecodeError: If schema is invalid JSON
    """
    schema_path = SCHEMA_DIR / f"{name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    with schema_path.open("r", encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def catalog_schema(item_schema: dict[str, Any]) -> dict[str, Any]:
    """Wrap a single-string schema into a catalog (array) schema."""
    return {
        "type": "array",
        "items": item_schema,
        "minItems": MIN_CATALOG_ITEMS,
    }


def _registry(retrieve: Callable[[str], dict[str, Any]] | None) -> Registry:
    if retrieve is None:
        return Registry()

    def _retrieve(uri: str) -> Resource:
        return Resource.from_contents(retrieve(uri), default_specification=DRAFT7)

    return Registry(retrieve=_retrieve)  # type: ignore[call-arg]


def validate_document(
    instance: Any,
    schema: dict[str, Any],
    label: str,
    retrieve: Callable[[str], dict[str, Any]] | None = None,
) -> None:
    """Validate a document and turn schema errors into ValidationFailure.

    Args:
        instance: Parsed JSON document
        schema: Schema to validate against
        label: Document name used in the error message (e.g. "strings.json")
        retrieve: Optional callable resolving remote ``$ref`` URIs to schemas

    Raises:
        ValidationFailure: If the document (or the schema itself) is invalid
    """
    try:
        validator_cls = jsonschema.validators.validator_for(schema)
        validator_cls.check_schema(schema)
        validator = validator_cls(schema, registry=_registry(retrieve))
        error = jsonschema.exceptions.best_match(validator.iter_errors(instance))
    except SchemaError as e:
        raise ValidationFailure(f"invalid schema for {label}: {e.message}", cause=e) from e
    except Unresolvable as e:
        raise ValidationFailure(f"cannot resolve schema reference for {label}: {e}", cause=e) from e

    if error is None:
        return

    error_path = " -> ".join(str(p) for p in error.path) if error.path else "root"
    raise ValidationFailure(
        f"invalid format of {label}, validation error at {error_path}: {error.message}",
        path=error_path,
        cause=error,
    )


def validate_strings(
    strings: list[MultiLanguageString],
    item_schema: dict[str, Any] | None = None,
    retrieve: Callable[[str], dict[str, Any]] | None = None,
    label: str = "strings.json",
) -> None:
    """Validate a string catalog.

    Args:
        strings: Catalog to validate
        item_schema: Schema of one string (as served by ``schemas/string``);
            the bundled catalog schema is used when omitted
        retrieve: Optional remote ``$ref`` resolver
        label: Document name used in error messages

    Raises:
        ValidationFailure: If the catalog doesn't conform
    """
    schema = catalog_schema(item_schema) if item_schema is not None else load_schema("strings")
    validate_document(strings, schema, label, retrieve)


def validate_manifest(
    manifest: WidgetManifest,
    schema: dict[str, Any] | None = None,
    retrieve: Callable[[str], dict[str, Any]] | None = None,
) -> None:
    """Validate a widget manifest before it is sent to the server.

    Raises:
        ValidationFailure: If the manifest doesn't conform
    """
    if schema is None:
        schema = load_schema("widget_manifest")
    validate_document(manifest, schema, "manifest.json", retrieve)
