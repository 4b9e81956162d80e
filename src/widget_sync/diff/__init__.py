"""Diff engines for widget assets and string catalogs."""

from .assets import AssetDiff, diff_assets, index_assets, remote_asset_id, upload_params
from .strings import (
    StringDiff,
    apply_widget_prefix,
    catalog_map,
    covering_paths,
    diff_strings,
    require_string_ids,
    strip_widget_prefix,
    widget_prefix,
)

__all__ = [
    "AssetDiff",
    "StringDiff",
    "apply_widget_prefix",
    "catalog_map",
    "covering_paths",
    "diff_assets",
    "diff_strings",
    "index_assets",
    "remote_asset_id",
    "require_string_ids",
    "strip_widget_prefix",
    "upload_params",
    "widget_prefix",
]
