"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import polib
import pytest

from widget_sync.cli import build_parser, format_table, main
from widget_sync.core.errors import LocalPreconditionError

CATALOG = [
    {"id": "NAME", "values": {"en": {"value": "Popup", "state": "final"}, "it": {"value": "Finestra", "state": "final"}}},
    {"id": "DESCRIPTION", "values": {"en": {"value": "A popup", "state": "final"}}},
]


class TestParser:
    """Test argument parsing."""

    def test_widget_push_defaults(self) -> None:
        args = build_parser().parse_args(["widget", "push"])

        assert args.directory == "."
        assert args.global_scope is False
        assert args.discard_ids_on_scope_change is False
        assert args.scope_resource == "Widget"

    def test_global_flag(self) -> None:
        args = build_parser().parse_args(["widget", "pull", "popup1", "-g", "--ver", "3"])

        assert args.global_scope is True
        assert args.ver == "3"

    def test_list_kinds_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["widget", "list", "-e", "-i"])

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatTable:
    def test_columns(self) -> None:
        rows = [
            {"id": "popup1", "version": 2, "draft": True, "acct_id": "acme"},
            {"id": "chat", "version": 10, "draft": False},
        ]

        lines = format_table(rows, ["id", "version", "draft", "acct_id"]).splitlines()

        assert lines[0].split() == ["ID", "VERSION", "DRAFT", "GLOBAL"]
        assert lines[1].split() == ["popup1", "2", "✓"]
        assert lines[2].split() == ["chat", "10", "✓"]


class TestStringsBridgeCommands:
    """Test the offline export/import commands."""

    def test_export(self, tmp_path: Path) -> None:
        source = tmp_path / "strings.json"
        source.write_text(json.dumps(CATALOG))

        main(["strings", "export", str(source), "--project", "popup1", "-r", "en", "--dir", str(tmp_path)])

        po = polib.pofile(str(tmp_path / "strings.it.po"))
        assert {e.msgid: e.msgstr for e in po} == {"NAME": "Finestra", "DESCRIPTION": ""}

    def test_import_to_file(self, tmp_path: Path) -> None:
        source = tmp_path / "strings.json"
        source.write_text(json.dumps(CATALOG))
        main(["strings", "export", str(source), "--project", "p", "-l", "it", "--dir", str(tmp_path)])
        target = tmp_path / "merged.json"

        main(["strings", "import", str(tmp_path / "strings.it.po"), "-m", str(source), "-o", str(target)])

        merged = json.loads(target.read_text())
        assert merged[0]["values"]["en"]["value"] == "Popup"
        assert merged[0]["values"]["it"]["value"] == "Finestra"

    def test_import_to_stdout(self, tmp_path: Path, capsys) -> None:
        po = polib.POFile()
        po.metadata = {"Language": "fr", "Content-Type": "text/plain; charset=UTF-8"}
        po.append(polib.POEntry(msgid="NAME", msgstr="Fenêtre"))
        po.save(str(tmp_path / "fr.po"))

        main(["strings", "import", str(tmp_path / "fr.po")])

        out = json.loads(capsys.readouterr().out)
        assert out == [{"id": "NAME", "values": {"fr": {"value": "Fenêtre", "state": "final"}}}]

    def test_missing_file_exits(self, tmp_path: Path, capsys) -> None:
        with pytest.raises(SystemExit) as info:
            main(["strings", "export", str(tmp_path / "none.json"), "--project", "p"])

        assert info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestConnectedCommands:
    """Test commands that talk to the service."""

    def test_not_logged_in(self, tmp_path: Path, capsys) -> None:
        with pytest.raises(SystemExit) as info:
            main(["--config", str(tmp_path / "config.json"), "info"])

        assert info.value.code == 1
        assert "perform a login" in capsys.readouterr().err

    def test_global_scope_needs_permission(self, tmp_path: Path, config, capsys) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config))

        with patch("widget_sync.cli.check_login_and_version") as check:
            check.side_effect = lambda cfg, client, version: cfg.update(info={"scopes": ["Widget.read"]})
            with pytest.raises(SystemExit):
                main(["--config", str(config_path), "widget", "list", "-g"])

        assert "not allowed to manage global widgets" in capsys.readouterr().err

    def test_push_uses_policy(self, tmp_path: Path, config) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config))

        with patch("widget_sync.cli.check_login_and_version"), patch("widget_sync.cli.WidgetPipeline") as pipeline_cls:
            pipeline_cls.return_value = MagicMock()
            main(["--config", str(config_path), "widget", "push", "-d", str(tmp_path), "--discard-ids-on-scope-change"])

        policy = pipeline_cls.call_args.args[1]
        assert policy.discard_ids_on_scope_change is True
        pipeline_cls.return_value.push.assert_called_once_with(tmp_path, False)

    def test_login_writes_config(self, tmp_path: Path) -> None:
        config_path = tmp_path / "vvc" / "config.json"

        with patch("widget_sync.cli.check_login_and_version"):
            main(
                [
                    "--config", str(config_path),
                    "login", "--server", "world.example.com", "--account", "acme",
                    "--user", "client-1", "--secret", "s3cret",
                ]
            )

        assert json.loads(config_path.read_text()) == {
            "server": "world.example.com",
            "acct_id": "acme",
            "user_id": "client-1",
            "secret": "s3cret",
        }

    def test_logout_removes_config_even_if_revoke_fails(self, tmp_path: Path, config) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config))

        with patch("widget_sync.cli.connect", side_effect=LocalPreconditionError("Not logged in")):
            main(["--config", str(config_path), "logout"])

        assert not config_path.exists()
