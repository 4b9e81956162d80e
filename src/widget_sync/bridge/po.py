"""Conversion between string catalogs and gettext PO files.

A string catalog holds every language of a string in one entry, while a PO
file holds a single language. Export writes one PO file per language,
import merges any number of PO files back into one catalog.

PO entries map to strings as follows:

- ``msgid`` is the string id and ``msgstr`` its value in the file language
- the extracted comment (``#.``) is the description; reference
  translations appended on export are skipped on import
- the ``fuzzy`` flag marks ``new``/``needs-review`` values; on import every
  fuzzy value becomes ``needs-review`` and every other one ``final``
"""

import copy
import re
from collections.abc import Iterable
from pathlib import Path

import polib

from ..core.errors import LocalPreconditionError
from ..core.types import MultiLanguageString, StringValue
from ..files import load_catalog_file

GENERATOR = "widget-sync"
FUZZY_FLAG = "fuzzy"
REVIEW_STATES = ("new", "needs-review")
REFERENCE_LINE_RE = re.compile(r"^REFERENCE \S+ TRANSLATION:")


def reference_marker(language: str) -> str:
    return f"REFERENCE {language.upper()} TRANSLATION:"


def _read_po_file(file_path: Path) -> polib.POFile:
    # polib.pofile() parses its argument as PO text when it isn't an existing path
    if not file_path.is_file():
        raise LocalPreconditionError(f"{file_path} not found")
    try:
        return polib.pofile(str(file_path))
    except (OSError, UnicodeDecodeError) as e:
        raise LocalPreconditionError(f"Failed to parse {file_path}: {e}", cause=e) from e


def _description_from_comment(comment: str) -> str:
    lines: list[str] = []
    for line in comment.splitlines():
        if REFERENCE_LINE_RE.match(line):
            break
        lines.append(line)
    return "\n".join(lines).strip()


def import_catalog_files(
    files: Iterable[Path],
    merge_base: Iterable[MultiLanguageString] | None = None,
    id_filter: str | None = None,
) -> list[MultiLanguageString]:
    """Merge PO files into a string catalog.

    Args:
        files: PO files, one language each (declared in the ``Language`` header)
        merge_base: Catalog to start from; its entries are kept and updated
        id_filter: Only import entries whose id starts with this prefix

    Returns:
        The merged catalog, base entries first, then new ids in file order

    Raises:
        LocalPreconditionError: If a file is missing, unparsable or has no language
    """
    catalog: dict[str, MultiLanguageString] = {}
    for string in merge_base or []:
        catalog[string["id"]] = copy.deepcopy(string)

    for file_path in files:
        file_path = Path(file_path)
        po = _read_po_file(file_path)
        language = po.metadata.get("Language", "").strip()
        if not language:
            raise LocalPreconditionError(f"{file_path} does not declare a language")

        for entry in po:
            if entry.obsolete or not entry.msgid:
                continue
            if id_filter and not entry.msgid.startswith(id_filter):
                continue

            string = catalog.setdefault(entry.msgid, MultiLanguageString(id=entry.msgid, values={}))
            values = string.setdefault("values", {})
            if entry.msgstr:
                state = "needs-review" if FUZZY_FLAG in entry.flags else "final"
                values[language] = StringValue(value=entry.msgstr, state=state)  # type: ignore[typeddict-item]

            description = _description_from_comment(entry.comment or "")
            if description:
                string["description"] = description

    return list(catalog.values())


def merge_catalogs(catalogs: Iterable[Iterable[MultiLanguageString]]) -> list[MultiLanguageString]:
    """Merge JSON catalogs; later catalogs override translations and descriptions."""
    merged: dict[str, MultiLanguageString] = {}
    for strings in catalogs:
        for string in strings:
            target = merged.setdefault(string["id"], MultiLanguageString(id=string["id"], values={}))
            target["values"].update(copy.deepcopy(string.get("values", {})))
            if string.get("description"):
                target["description"] = string["description"]
    return list(merged.values())


def catalog_languages(strings: Iterable[MultiLanguageString]) -> list[str]:
    """List the languages used by a catalog in first-seen order."""
    languages: dict[str, None] = {}
    for string in strings:
        for language in string.get("values", {}):
            languages.setdefault(language, None)
    return list(languages)


def build_po_file(
    strings: Iterable[MultiLanguageString],
    language: str,
    project: str,
    reference_language: str | None = None,
) -> polib.POFile:
    """Build the PO file of one language for a catalog."""
    from .. import __version__

    po = polib.POFile()
    po.metadata = {
        "Project-Id-Version": project,
        "Language": language,
        "MIME-Version": "1.0",
        "Content-Type": "text/plain; charset=UTF-8",
        "Content-Transfer-Encoding": "8bit",
        "X-Generator": f"{GENERATOR} {__version__}",
    }

    for string in strings:
        values = string.get("values", {})
        value = values.get(language)

        comment_lines = []
        if string.get("description"):
            comment_lines.append(string["description"])
        if reference_language and reference_language != language:
            reference = values.get(reference_language)
            if reference and reference.get("value"):
                comment_lines.append(f"{reference_marker(reference_language)} {reference['value']}")

        flags = []
        if value and value.get("state") in REVIEW_STATES:
            flags.append(FUZZY_FLAG)

        po.append(
            polib.POEntry(
                msgid=string["id"],
                msgstr=value["value"] if value else "",
                comment="\n".join(comment_lines),
                flags=flags,
            )
        )

    return po


def export_catalog_files(
    files: Iterable[Path],
    project: str,
    language: str | None = None,
    id_prefix: str | None = None,
    output_basename: str = "strings",
    reference_language: str | None = None,
    output_dir: Path = Path("."),
) -> list[Path]:
    """Write one PO file per language for a set of JSON catalogs.

    Args:
        files: JSON catalog files; their languages are united
        project: Value of the ``Project-Id-Version`` header
        language: Only write the file of this language
        id_prefix: Only export strings whose id starts with this prefix
        output_basename: Files are named ``<basename>.<language>.po``
        reference_language: Add this language's value as a comment for translators
        output_dir: Directory the files are written to

    Returns:
        Paths of the written files

    Raises:
        LocalPreconditionError: If a catalog can't be loaded
    """
    strings = merge_catalogs(load_catalog_file(Path(f)) for f in files)
    languages = catalog_languages(strings)
    if language:
        languages = [language]
    if id_prefix:
        strings = [s for s in strings if s["id"].startswith(id_prefix)]

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for lang in languages:
        po = build_po_file(strings, lang, project, reference_language)
        target = output_dir / f"{output_basename}.{lang}.po"
        po.save(str(target))
        written.append(target)

    return written
