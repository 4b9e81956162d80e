"""Widget push/pull pipeline.

This module provides the main interface for moving a widget between a
local directory and the widget service. Scanning, diffing and uploading
are delegated to the scanner, diff engines and UploadCoordinator.
"""

import copy
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .client import WidgetServiceClient, scope_params
from .core.errors import InvariantViolation, LocalPreconditionError, TransportFailure
from .core.types import Asset, MultiLanguageString, WidgetManifest
from .core.validator import validate_manifest, validate_strings
from .diff.strings import require_string_ids
from .files import load_catalog_file, load_json_file, save_json_file
from .scanner import HTML_FILE, SCSS_FILE, THUMBNAIL_FILE, hash_widget_assets, scan_widget_assets, validate_path_safety
from .sync.coordinator import UploadCoordinator

MANIFEST_FILE = "manifest.json"
STRINGS_FILE = "strings.json"

# Managed by the server, never sent or compared
SERVER_FIELDS = ("acct_id", "version", "draft")

# Derived from the widget content on push, not kept in a pulled manifest
CONTENT_FIELDS = ("assets", "stringIds", "htmlId", "scssId", "thumbnailId")

LIST_FIELDS = ("id", "type", "version", "draft", "acct_id")


@dataclass
class SyncPolicy:
    """Tunable behaviour of a push.

    Attributes:
        discard_ids_on_scope_change: When a widget recorded in one scope
            (account or global) is pushed to the other, re-upload every asset
            instead of reusing the recorded ids
        remote_schemas: Validate against the schemas published by the service
            (bundled schemas otherwise)
    """

    discard_ids_on_scope_change: bool = False
    remote_schemas: bool = True


def strip_server_fields(manifest: dict[str, Any]) -> dict[str, Any]:
    for key in SERVER_FIELDS:
        manifest.pop(key, None)
    return manifest


def find_asset(assets: list[Asset], path: str) -> Asset | None:
    for asset in assets:
        if asset["path"] == path:
            return asset
    return None


def resolve_asset_references(manifest: WidgetManifest) -> None:
    """Fill htmlId/scssId/thumbnailId from the resolved assets.

    Raises:
        InvariantViolation: If main.html or main.scss is missing or has no id
    """
    assets = manifest.get("assets", [])
    for path, key in ((HTML_FILE, "htmlId"), (SCSS_FILE, "scssId")):
        asset = find_asset(assets, path)
        if not asset or not asset.get("id"):
            raise InvariantViolation(f"no {path} in the assets")
        manifest[key] = asset["id"]  # type: ignore[literal-required]

    thumbnail = find_asset(assets, THUMBNAIL_FILE)
    if thumbnail and thumbnail.get("id"):
        manifest["thumbnailId"] = thumbnail["id"]
    else:
        manifest.pop("thumbnailId", None)


class WidgetPipeline:
    """Main interface for widget synchronization.

    Example:
        >>> pipeline = WidgetPipeline(client)
        >>> manifest = pipeline.push(Path("./popup1"))
        >>> pipeline.pull("popup1", Path("./copy"))
    """

    def __init__(self, client: WidgetServiceClient, policy: SyncPolicy | None = None):
        self.client = client
        self.policy = policy or SyncPolicy()
        self.coordinator = UploadCoordinator(client)

    # Schemas

    def _schema(self, name: str) -> dict[str, Any] | None:
        if not self.policy.remote_schemas:
            return None
        try:
            return self.client.fetch_schema(name)
        except TransportFailure as e:
            raise TransportFailure(
                f"Failed to get the {name} schema: {e.message}",
                original_error=e.original_error,
                response=e.response,
                body=e.body,
            ) from e

    def load_strings(self, file_path: Path) -> list[MultiLanguageString]:
        """Load and validate a string catalog file.

        Raises:
            LocalPreconditionError: If the file can't be loaded
            ValidationFailure: If the catalog doesn't match the string schema
        """
        strings = load_catalog_file(file_path)
        retrieve = self.client.retrieve if self.policy.remote_schemas else None
        validate_strings(strings, self._schema("string"), retrieve, label=Path(file_path).name)  # type: ignore[arg-type]
        return strings  # type: ignore[return-value]

    # Widgets

    def fetch_manifest(
        self, widget_id: str, version: int | str | None = None, global_scope: bool = False
    ) -> WidgetManifest:
        path = f"widgets/{widget_id}" + (f"/{version}" if version is not None else "")
        return self.client.get(path, params=scope_params(global_scope))  # type: ignore[no-any-return]

    def _fetch_current(self, widget_id: str, global_scope: bool) -> WidgetManifest | None:
        try:
            manifest = self.fetch_manifest(widget_id, global_scope=global_scope)
        except TransportFailure as e:
            if e.kind == TransportFailure.STATUS and e.status_code == 404:
                return None
            raise
        if manifest:
            strip_server_fields(manifest)  # type: ignore[arg-type]
        return manifest or None

    def push(self, directory: Path, global_scope: bool = False) -> WidgetManifest:
        """Push the widget in ``directory`` to the service.

        Steps: strings first (they provide stringIds), then assets, then the
        manifest itself. The local manifest.json is rewritten only when all
        of them succeeded.

        Raises:
            LocalPreconditionError: Missing/malformed local files or strings
            ValidationFailure: Strings or manifest rejected by the schema
            InvariantViolation: Assets don't resolve main.html/main.scss
            TransportFailure: Any failed request
        """
        directory = Path(directory).resolve()
        manifest_path = directory / MANIFEST_FILE

        manifest: WidgetManifest = load_json_file(manifest_path)
        if not isinstance(manifest, dict) or not manifest.get("id"):
            raise LocalPreconditionError(f"{MANIFEST_FILE} has no widget id")
        recorded_global = "acct_id" not in manifest
        strip_server_fields(manifest)  # type: ignore[arg-type]
        widget_id = manifest["id"]

        old_manifest = self._fetch_current(widget_id, global_scope)

        strings = self.load_strings(directory / STRINGS_FILE)
        manifest["stringIds"] = self.coordinator.sync_strings(widget_id, strings, global_scope)
        require_string_ids(manifest["stringIds"])

        assets = hash_widget_assets(directory, scan_widget_assets(directory))
        old_assets = manifest.get("assets")
        discard_ids = self.policy.discard_ids_on_scope_change and recorded_global != global_scope
        self.coordinator.sync_assets(
            widget_id,
            directory,
            old_assets if isinstance(old_assets, list) else [],
            assets,
            global_scope,
            discard_ids=discard_ids,
        )
        manifest["assets"] = assets
        resolve_asset_references(manifest)

        retrieve = self.client.retrieve if self.policy.remote_schemas else None
        validate_manifest(manifest, self._schema("widget_create"), retrieve)

        params = scope_params(global_scope)
        if old_manifest is None:
            print("uploading manifest.json", file=sys.stderr)
            saved = self.client.post("widgets", json=manifest, params=params) or {}
            print(f"created first {'draft' if saved.get('draft') else 'version'}", file=sys.stderr)
        elif old_manifest != manifest:
            print("uploading manifest.json", file=sys.stderr)
            saved = self.client.put(f"widgets/{widget_id}", json=manifest, params=params) or {}
            print(f"saved version {saved.get('version')} {'draft' if saved.get('draft') else ''}".rstrip(), file=sys.stderr)
        else:
            print("manifest.json unchanged", file=sys.stderr)

        save_json_file(manifest_path, manifest)
        return manifest

    def pull(
        self,
        widget_id: str,
        directory: Path | None = None,
        version: int | str | None = None,
        global_scope: bool = False,
    ) -> WidgetManifest:
        """Download a widget version into a new directory.

        Raises:
            LocalPreconditionError: If the destination already exists
            TransportFailure: Any failed request
        """
        try:
            manifest = self.fetch_manifest(widget_id, version, global_scope)
        except TransportFailure as e:
            what = "the requested version of " if version is not None else ""
            raise TransportFailure(
                f"Failed to download {what}widget {widget_id}: {e.message}",
                original_error=e.original_error,
                response=e.response,
                body=e.body,
            ) from e
        strip_server_fields(manifest)  # type: ignore[arg-type]

        widget_dir = Path(directory) if directory else Path(widget_id)
        if widget_dir.exists():
            raise LocalPreconditionError(f"Destination path {widget_dir} already exists")
        widget_dir.mkdir(parents=True)

        strings = self.coordinator.fetch_widget_strings(widget_id, global_scope)
        save_json_file(widget_dir / STRINGS_FILE, strings)

        self.download_assets(manifest.get("assets", []), widget_dir)

        local_manifest = copy.deepcopy(manifest)
        for key in CONTENT_FIELDS:
            local_manifest.pop(key, None)  # type: ignore[misc]
        save_json_file(widget_dir / MANIFEST_FILE, local_manifest)
        return local_manifest

    def download_assets(self, assets: list[Asset], directory: Path) -> None:
        """Download every asset to its path below ``directory``.

        Assets may carry a ``url``; otherwise they are fetched from
        ``assets/<id>``.

        Raises:
            ValueError: If an asset path points outside ``directory``
        """
        for asset in assets:
            target = directory / asset["path"]
            validate_path_safety(target, directory)
            url = asset.get("url") or f"assets/{asset['id']}"  # type: ignore[typeddict-item]
            print(f"downloading {asset['path']}", file=sys.stderr)
            self.client.download(url, target)

    def list_widgets(self, kind: str | None = None, global_scope: bool = False) -> list[dict[str, Any]]:
        """List widgets with their English name.

        Args:
            kind: Only list widgets of this type ("engagement" or "interaction")
            global_scope: List global widgets
        """
        params: dict[str, Any] = {"fields": ",".join(LIST_FIELDS), "sort": "id"}
        if kind:
            params["q"] = f"eq(type,{kind})"
        rows = {w["id"]: dict(w) for w in self.client.get("widgets", params=scope_params(global_scope, params)) or []}
        if not rows:
            return []

        name_ids = ",".join(f"WIDGET.{widget_id}.NAME" for widget_id in rows)
        for string in self.coordinator.fetch_strings(name_ids, global_scope):
            parts = string["id"].split(".")
            if len(parts) != 3 or parts[0] != "WIDGET" or parts[2] != "NAME":
                continue
            english = string.get("values", {}).get("en", {})
            if parts[1] in rows and english.get("value"):
                rows[parts[1]]["name"] = english["value"]
        return list(rows.values())

    def activate(self, widget_id: str, version: int | str, global_scope: bool = False) -> Any:
        """Make a widget version the active one."""
        return self.client.post(f"widgets/{widget_id}/{version}/activate", params=scope_params(global_scope))

    def delete(self, widget_id: str, version: int | str | None = None, global_scope: bool = False) -> Any:
        """Delete a widget version, or the whole widget when no version is given."""
        path = f"widgets/{widget_id}" + (f"/{version}" if version is not None else "")
        return self.client.delete(path, params=scope_params(global_scope))
