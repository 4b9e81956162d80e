"""Upload of changed assets and strings to the widget service.

Uploads run one at a time, in catalog order, and stop at the first
failure. Items uploaded before the failure stay on the server; the caller
must not record the new manifest in that case, so that the next run diffs
against the old one again.
"""

import sys
from pathlib import Path

from ..client import WidgetServiceClient, scope_params
from ..core.errors import InvariantViolation, TransportFailure
from ..core.types import Asset, MultiLanguageString
from ..diff.assets import AssetDiff, diff_assets, upload_params
from ..diff.strings import (
    apply_widget_prefix,
    covering_paths,
    diff_strings,
    strip_widget_prefix,
    widget_prefix,
)


class UploadCoordinator:
    """Pushes the changed part of a widget to the service.

    Example:
        >>> coordinator = UploadCoordinator(client)
        >>> string_ids = coordinator.sync_strings("popup1", strings)
        >>> coordinator.sync_assets("popup1", Path("."), manifest["assets"], assets)
    """

    def __init__(self, client: WidgetServiceClient):
        self.client = client

    # Assets

    def upload_asset(self, widget_id: str, root: Path, asset: Asset, global_scope: bool = False) -> Asset:
        """Upload one asset and store the server metadata on it."""
        print(f"uploading {asset['path']}", file=sys.stderr)
        data = self.client.upload(
            f"widgets/{widget_id}/upload",
            Path(root) / asset["path"],
            params=upload_params(asset, global_scope),
        )
        if not isinstance(data, dict) or not data.get("id"):
            raise InvariantViolation(f"upload of {asset['path']} returned no asset id: {data!r}")
        asset["id"] = data["id"]
        if data.get("type"):
            asset["type"] = data["type"]
        if data.get("size") is not None:
            asset["size"] = data["size"]
        return asset

    def sync_assets(
        self,
        widget_id: str,
        root: Path,
        old_assets: list[Asset],
        new_assets: list[Asset],
        global_scope: bool = False,
        discard_ids: bool = False,
    ) -> AssetDiff:
        """Upload the assets that changed since the recorded manifest.

        ``new_assets`` is updated in place: carried-forward metadata for
        unchanged assets, server answers for uploaded ones.

        Raises:
            TransportFailure: On the first failed upload
            InvariantViolation: If an upload answer carries no asset id
        """
        result = diff_assets(old_assets, new_assets, discard_ids=discard_ids)
        for asset in result.to_upload:
            print(f"{asset['path']} changed", file=sys.stderr)
            try:
                self.upload_asset(widget_id, root, asset, global_scope)
            except TransportFailure as e:
                print(f"upload of {asset['path']} failed, {e.describe()}", file=sys.stderr)
                raise
        return result

    # Strings

    def fetch_strings(self, path: str, global_scope: bool = False) -> list[MultiLanguageString]:
        return self.client.get("strings", params=scope_params(global_scope, {"path": path})) or []

    def fetch_widget_strings(self, widget_id: str, global_scope: bool = False) -> list[MultiLanguageString]:
        """Fetch a widget's strings with local (unprefixed) ids."""
        return strip_widget_prefix(self.fetch_strings(widget_prefix(widget_id), global_scope), widget_id)

    def upload_string(self, string: MultiLanguageString, global_scope: bool = False) -> MultiLanguageString:
        print(f"string {string['id']} changed, uploading", file=sys.stderr)
        try:
            return self.client.put(f"strings/{string['id']}", json=string, params=scope_params(global_scope))
        except TransportFailure as e:
            print(f"upload of string {string['id']} failed, {e.describe()}", file=sys.stderr)
            raise

    def sync_strings(
        self, widget_id: str, new_strings: list[MultiLanguageString], global_scope: bool = False
    ) -> list[str]:
        """Upload the widget strings that differ from the server copy.

        Returns:
            Every id of ``new_strings``, uploaded or not

        Raises:
            TransportFailure: If fetching fails or on the first failed upload
            InvariantViolation: If the server returns a string of another widget
        """
        old_strings = self.fetch_widget_strings(widget_id, global_scope)
        result = diff_strings(old_strings, new_strings)
        for string in result.to_upload:
            self.upload_string(apply_widget_prefix(string, widget_id), global_scope)
        return result.ids

    def sync_account_strings(self, new_strings: list[MultiLanguageString], global_scope: bool = False) -> list[str]:
        """Upload account (non widget) strings that differ from the server copy."""
        paths = covering_paths(s["id"] for s in new_strings)
        old_strings = self.fetch_strings(",".join(paths), global_scope)
        result = diff_strings(old_strings, new_strings)
        for string in result.to_upload:
            self.upload_string(string, global_scope)
        return result.ids
