"""Change detection between a recorded and a freshly scanned asset list.

An asset is unchanged when the recorded entry for the same path has a
server id and the same content hash. Unchanged assets inherit the server
metadata of the recorded entry; everything else has to be uploaded.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..core.types import Asset

# Length of the hash prefix appended to global asset ids
GLOBAL_HASH_PREFIX_LENGTH = 8


@dataclass
class AssetDiff:
    """Outcome of diffing two asset lists.

    Both lists hold the very objects of the new asset list, so filling in
    the server response on an item of ``to_upload`` updates the manifest.

    Attributes:
        to_upload: New or changed assets, in new-list order
        resolved: Unchanged assets with id/type/size carried forward
    """

    to_upload: list[Asset] = field(default_factory=list)
    resolved: list[Asset] = field(default_factory=list)

    @property
    def changed_paths(self) -> list[str]:
        return [a["path"] for a in self.to_upload]


def index_assets(assets: Iterable[Asset]) -> dict[str, Asset]:
    """Map assets by path.

    When two entries share a path the last one wins. Duplicates are not
    reported.
    """
    indexed: dict[str, Asset] = {}
    for asset in assets:
        indexed[asset["path"]] = asset
    return indexed


def is_unchanged(old: Asset | None, new: Asset) -> bool:
    """Tell whether ``new`` is already stored on the server as ``old``."""
    return bool(old and old.get("id") and old.get("hash") == new.get("hash"))


def diff_assets(old_assets: Iterable[Asset], new_assets: Iterable[Asset], *, discard_ids: bool = False) -> AssetDiff:
    """Compute which assets need to be uploaded.

    Unchanged entries of ``new_assets`` are updated in place: ``id`` is
    copied from the recorded entry, ``size`` and ``type`` only when the
    recorded entry has them.

    Args:
        old_assets: Assets recorded in the previous manifest
        new_assets: Freshly scanned and hashed assets
        discard_ids: Treat every recorded asset as never uploaded

    Returns:
        AssetDiff splitting the new assets into uploads and carried-forward entries
    """
    old_map = {} if discard_ids else index_assets(old_assets)
    new_map = index_assets(new_assets)
    result = AssetDiff()

    for path, new in new_map.items():
        old = old_map.get(path)
        if old is None or not is_unchanged(old, new):
            result.to_upload.append(new)
            continue

        new["id"] = old["id"]
        if old.get("size") is not None:
            new["size"] = old["size"]
        if old.get("type"):
            new["type"] = old["type"]
        result.resolved.append(new)

    return result


def remote_asset_id(asset: Asset, global_scope: bool = False) -> str:
    """Compute the key an asset is uploaded under.

    Account assets are keyed by path. Global assets are content addressed:
    the key is ``<path>/<hash prefix>``, so re-uploading identical bytes
    targets the same key while changed content gets a new one.
    """
    if not global_scope:
        return asset["path"]
    return f"{asset['path']}/{asset['hash'][:GLOBAL_HASH_PREFIX_LENGTH]}"


def upload_params(asset: Asset, global_scope: bool = False) -> dict[str, str]:
    """Query parameters of the upload request for an asset."""
    params = {"id": remote_asset_id(asset, global_scope)}
    if global_scope:
        params["global"] = "true"
    return params
