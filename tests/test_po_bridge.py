"""Tests for the PO import/export bridge."""

import json
from pathlib import Path

import polib
import pytest

from widget_sync import __version__
from widget_sync.bridge.po import (
    build_po_file,
    catalog_languages,
    export_catalog_files,
    import_catalog_files,
    merge_catalogs,
)
from widget_sync.core.errors import LocalPreconditionError

GREETING = [
    {
        "id": "GREETING",
        "values": {"en": {"value": "Hi", "state": "final"}, "it": {"value": "Ciao", "state": "final"}},
    }
]


def write_catalog(path: Path, strings: list) -> Path:
    path.write_text(json.dumps(strings), encoding="utf-8")
    return path


def write_po(path: Path, language: str | None, entries: list[polib.POEntry]) -> Path:
    po = polib.POFile()
    po.metadata = {"Content-Type": "text/plain; charset=UTF-8"}
    if language:
        po.metadata["Language"] = language
    for entry in entries:
        po.append(entry)
    po.save(str(path))
    return path


def values_only(strings: list) -> dict:
    return {s["id"]: {lang: v["value"] for lang, v in s["values"].items()} for s in strings}


class TestExport:
    """Test export_catalog_files."""

    def test_one_file_per_language(self, tmp_path: Path) -> None:
        source = write_catalog(tmp_path / "strings.json", GREETING)

        written = export_catalog_files([source], "popup1", output_dir=tmp_path)

        assert [p.name for p in written] == ["strings.en.po", "strings.it.po"]

    def test_header_is_stamped(self, tmp_path: Path) -> None:
        source = write_catalog(tmp_path / "strings.json", GREETING)

        export_catalog_files([source], "popup1", output_dir=tmp_path)
        po = polib.pofile(str(tmp_path / "strings.it.po"))

        assert po.metadata["Language"] == "it"
        assert po.metadata["Project-Id-Version"] == "popup1"
        assert po.metadata["X-Generator"] == f"widget-sync {__version__}"

    def test_language_filter(self, tmp_path: Path) -> None:
        source = write_catalog(tmp_path / "strings.json", GREETING)

        written = export_catalog_files([source], "p", language="it", output_basename="out", output_dir=tmp_path)

        assert [p.name for p in written] == ["out.it.po"]
        assert not (tmp_path / "out.en.po").exists()

    def test_languages_are_united_across_files(self, tmp_path: Path) -> None:
        first = write_catalog(tmp_path / "a.json", [{"id": "A", "values": {"en": {"value": "a", "state": "final"}}}])
        second = write_catalog(tmp_path / "b.json", [{"id": "B", "values": {"fr": {"value": "b", "state": "final"}}}])

        written = export_catalog_files([first, second], "p", output_dir=tmp_path)

        assert sorted(p.name for p in written) == ["strings.en.po", "strings.fr.po"]
        # Every id appears in every language file, untranslated ones empty
        fr = {e.msgid: e.msgstr for e in polib.pofile(str(tmp_path / "strings.fr.po"))}
        assert fr == {"A": "", "B": "b"}

    def test_id_prefix_filter(self, tmp_path: Path) -> None:
        strings = GREETING + [{"id": "OTHER.X", "values": {"en": {"value": "x", "state": "final"}}}]
        source = write_catalog(tmp_path / "strings.json", strings)

        export_catalog_files([source], "p", id_prefix="OTHER.", output_dir=tmp_path)

        assert [e.msgid for e in polib.pofile(str(tmp_path / "strings.en.po"))] == ["OTHER.X"]

    def test_review_states_are_fuzzy(self) -> None:
        strings = [
            {"id": "A", "values": {"en": {"value": "a", "state": "new"}}},
            {"id": "B", "values": {"en": {"value": "b", "state": "needs-review"}}},
            {"id": "C", "values": {"en": {"value": "c", "state": "final"}}},
        ]

        po = build_po_file(strings, "en", "p")

        assert {e.msgid: e.fuzzy for e in po} == {"A": True, "B": True, "C": False}

    def test_reference_translation_comment(self) -> None:
        po = build_po_file(
            [{**GREETING[0], "description": "Shown on open"}], "it", "p", reference_language="en"
        )
        entry = po[0]

        assert entry.comment == "Shown on open\nREFERENCE EN TRANSLATION: Hi"

    def test_no_reference_in_reference_language_file(self) -> None:
        po = build_po_file(GREETING, "en", "p", reference_language="en")

        assert po[0].comment == ""

    def test_missing_catalog_raises(self, tmp_path: Path) -> None:
        with pytest.raises(LocalPreconditionError, match="not found"):
            export_catalog_files([tmp_path / "nope.json"], "p", output_dir=tmp_path)


class TestImport:
    """Test import_catalog_files."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Test export then import gives back the same values."""
        source = write_catalog(tmp_path / "strings.json", GREETING)
        written = export_catalog_files([source], "p", output_dir=tmp_path)

        imported = import_catalog_files(written)

        assert values_only(imported) == values_only(GREETING)
        assert all(v["state"] == "final" for v in imported[0]["values"].values())

    def test_round_trip_drops_reference_lines(self, tmp_path: Path) -> None:
        strings = [{**GREETING[0], "description": "Greeting\non two lines"}]
        source = write_catalog(tmp_path / "strings.json", strings)
        written = export_catalog_files([source], "p", reference_language="en", output_dir=tmp_path)

        imported = import_catalog_files(written)

        assert imported[0]["description"] == "Greeting\non two lines"

    def test_fuzzy_becomes_needs_review(self, tmp_path: Path) -> None:
        po = write_po(tmp_path / "it.po", "it", [polib.POEntry(msgid="A", msgstr="a", flags=["fuzzy"])])

        imported = import_catalog_files([po])

        assert imported[0]["values"]["it"] == {"value": "a", "state": "needs-review"}

    def test_empty_translation_is_absent(self, tmp_path: Path) -> None:
        po = write_po(tmp_path / "it.po", "it", [polib.POEntry(msgid="A", msgstr="")])

        imported = import_catalog_files([po])

        assert imported == [{"id": "A", "values": {}}]

    def test_missing_language_raises(self, tmp_path: Path) -> None:
        po = write_po(tmp_path / "x.po", None, [polib.POEntry(msgid="A", msgstr="a")])

        with pytest.raises(LocalPreconditionError, match="does not declare a language"):
            import_catalog_files([po])

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(LocalPreconditionError, match="not found"):
            import_catalog_files([tmp_path / "missing.po"])

    def test_later_file_wins(self, tmp_path: Path) -> None:
        first = write_po(tmp_path / "a.po", "it", [polib.POEntry(msgid="A", msgstr="uno")])
        second = write_po(tmp_path / "b.po", "it", [polib.POEntry(msgid="A", msgstr="due")])

        imported = import_catalog_files([first, second])

        assert imported[0]["values"]["it"]["value"] == "due"

    def test_merge_base_and_filter(self, tmp_path: Path) -> None:
        """Test that the base is kept and only filtered entries are merged."""
        base = [{"id": "W.NAME", "values": {"en": {"value": "Name", "state": "final"}}, "description": "d"}]
        po = write_po(
            tmp_path / "it.po",
            "it",
            [
                polib.POEntry(msgid="W.NAME", msgstr="Nome"),
                polib.POEntry(msgid="W.NEW", msgstr="Nuovo"),
                polib.POEntry(msgid="X.SKIP", msgstr="Salta"),
            ],
        )

        imported = import_catalog_files([po], merge_base=base, id_filter="W.")

        assert [s["id"] for s in imported] == ["W.NAME", "W.NEW"]
        assert values_only(imported)["W.NAME"] == {"en": "Name", "it": "Nome"}
        assert imported[0]["description"] == "d"
        assert base[0]["values"] == {"en": {"value": "Name", "state": "final"}}

    def test_obsolete_entries_are_ignored(self, tmp_path: Path) -> None:
        po = write_po(tmp_path / "it.po", "it", [polib.POEntry(msgid="OLD", msgstr="vecchio", obsolete=True)])

        assert import_catalog_files([po]) == []


class TestCatalogHelpers:
    def test_merge_catalogs(self) -> None:
        merged = merge_catalogs(
            [
                [{"id": "A", "values": {"en": {"value": "a", "state": "final"}}, "description": "first"}],
                [{"id": "A", "values": {"it": {"value": "b", "state": "final"}}}],
            ]
        )

        assert values_only(merged) == {"A": {"en": "a", "it": "b"}}
        assert merged[0]["description"] == "first"

    def test_catalog_languages_first_seen_order(self) -> None:
        strings = [
            {"id": "A", "values": {"it": {"value": "a"}, "en": {"value": "a"}}},
            {"id": "B", "values": {"fr": {"value": "b"}, "en": {"value": "b"}}},
        ]

        assert catalog_languages(strings) == ["it", "en", "fr"]
