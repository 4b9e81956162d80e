"""Change detection and id handling for multi-language string catalogs."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..core.errors import InvariantViolation, LocalPreconditionError
from ..core.types import MultiLanguageString

REQUIRED_WIDGET_STRINGS = ("NAME", "DESCRIPTION")


@dataclass
class StringDiff:
    """Outcome of diffing two string catalogs.

    Attributes:
        ids: Every id of the new catalog, in catalog order
        to_upload: Normalized entries that are new or differ from the old catalog
    """

    ids: list[str] = field(default_factory=list)
    to_upload: list[MultiLanguageString] = field(default_factory=list)


def normalize_string(string: MultiLanguageString) -> MultiLanguageString:
    """Keep only the fields that take part in the comparison."""
    normalized = MultiLanguageString(id=string["id"], values=string.get("values", {}))
    if string.get("description"):
        normalized["description"] = string["description"]
    return normalized


def catalog_map(strings: Iterable[MultiLanguageString]) -> dict[str, MultiLanguageString]:
    """Map normalized strings by id (last entry wins on duplicate ids)."""
    mapped: dict[str, MultiLanguageString] = {}
    for string in strings:
        mapped[string["id"]] = normalize_string(string)
    return mapped


def diff_strings(
    old_strings: Iterable[MultiLanguageString], new_strings: Iterable[MultiLanguageString]
) -> StringDiff:
    """Compute which strings of ``new_strings`` differ from ``old_strings``.

    Comparison is plain dict equality on the normalized entries, so the
    order in which languages appear in ``values`` doesn't matter.
    """
    old_map = catalog_map(old_strings)
    new_map = catalog_map(new_strings)
    result = StringDiff(ids=list(new_map))

    for string_id, new in new_map.items():
        if old_map.get(string_id) != new:
            result.to_upload.append(new)

    return result


def widget_prefix(widget_id: str) -> str:
    return f"WIDGET.{widget_id}."


def strip_widget_prefix(strings: Iterable[MultiLanguageString], widget_id: str) -> list[MultiLanguageString]:
    """Turn server-side widget string ids into local ids.

    Raises:
        InvariantViolation: If a string doesn't belong to the widget
    """
    prefix = widget_prefix(widget_id)
    local: list[MultiLanguageString] = []
    for string in strings:
        if not string["id"].startswith(prefix):
            raise InvariantViolation(f"string {string['id']} does not belong to widget {widget_id}")
        local.append({**string, "id": string["id"][len(prefix):]})  # type: ignore[typeddict-item]
    return local


def apply_widget_prefix(string: MultiLanguageString, widget_id: str) -> MultiLanguageString:
    """Return a copy of a local widget string with its server-side id."""
    return {**string, "id": f"{widget_prefix(widget_id)}{string['id']}"}  # type: ignore[typeddict-item]


def require_string_ids(ids: Iterable[str], required: Iterable[str] = REQUIRED_WIDGET_STRINGS) -> None:
    """Check that mandatory string ids are present.

    Raises:
        LocalPreconditionError: Naming the first missing id
    """
    present = set(ids)
    for string_id in required:
        if string_id not in present:
            raise LocalPreconditionError(f"{string_id} string missing")


def _id_tree(ids: Iterable[str]) -> dict[str, Any]:
    tree: dict[str, Any] = {}
    for string_id in ids:
        node = tree
        parts = string_id.split(".")
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node.setdefault(parts[-1], True)
    return tree


def covering_paths(ids: Iterable[str]) -> list[str]:
    """Find a small set of dot-prefixes whose strings include all ``ids``.

    Used to fetch the current server strings in few requests before a
    bulk push. The result may cover more strings than needed; an empty
    string means "everything".

    Example:
        ["WIDGET.a.NAME", "WIDGET.a.DESCRIPTION"] -> ["WIDGET.a"]
    """

    def _walk(node: dict[str, Any], path: str, depth: int) -> list[str]:
        keys = list(node)
        if not keys:
            return [path]
        if len(keys) > 1:
            # Split into sibling fetches only near the root and for two branches
            if depth > 1 or len(keys) > 2 or not all(isinstance(node[k], dict) for k in keys):
                return [path]
            paths: list[str] = []
            for key in keys:
                paths.extend(_walk(node[key], f"{path}.{key}" if path else key, depth + 1))
            return paths
        child = node[keys[0]]
        if not isinstance(child, dict):
            return [path]
        return _walk(child, f"{path}.{keys[0]}" if path else keys[0], depth + 1)

    return _walk(_id_tree(ids), "", 0)
