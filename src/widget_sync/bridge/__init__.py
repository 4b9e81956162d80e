"""Translation file formats.

This package converts string catalogs to and from the files translators
work with.
"""

from .po import build_po_file, export_catalog_files, import_catalog_files, merge_catalogs

__all__ = [
    "build_po_file",
    "export_catalog_files",
    "import_catalog_files",
    "merge_catalogs",
]
