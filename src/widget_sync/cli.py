"""Command-line interface for the widget synchronization tool.

This module provides the ``widget-sync`` entry point. Progress goes to
stderr, command results (JSON, tables) to stdout.
"""

import argparse
import getpass
import json
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .bridge.po import export_catalog_files, import_catalog_files
from .client import WidgetServiceClient
from .config import ConfigStore
from .core.errors import LocalPreconditionError, WidgetSyncError
from .core.types import Config
from .files import load_catalog_file, save_catalog_file
from .pipeline import STRINGS_FILE, SyncPolicy, WidgetPipeline
from .startup import check_login_and_version, has_scope
from .sync.coordinator import UploadCoordinator


def connect(args: argparse.Namespace) -> tuple[ConfigStore, Config, WidgetServiceClient]:
    """Load the credentials and run the login/version check."""
    store = ConfigStore(args.config)
    config = store.read()
    client = WidgetServiceClient(config, timeout=args.timeout)
    check_login_and_version(config, client, __version__)

    resource = getattr(args, "scope_resource", None)
    if getattr(args, "global_scope", False) and resource:
        if not has_scope(config.get("info", {}), f"{resource}.global"):
            raise LocalPreconditionError(f"This client is not allowed to manage global {resource.lower()}s")
    return store, config, client


def format_table(rows: list[dict[str, Any]], columns: list[str]) -> str:
    """Render rows as left-aligned text columns."""
    cells = [[c.upper() for c in columns]]
    for row in rows:
        line = []
        for column in columns:
            value = row.get(column)
            if column == "draft":
                value = "✓" if value else ""
            elif column == "acct_id":
                # Global widgets have no owner account
                value = "" if value else "✓"
            line.append("" if value is None else str(value))
        cells.append(line)
    cells[0] = ["GLOBAL" if c == "ACCT_ID" else c for c in cells[0]]

    widths = [max(len(r[i]) for r in cells) for i in range(len(columns))]
    return "\n".join("  ".join(v.ljust(w) for v, w in zip(r, widths)).rstrip() for r in cells)


# Account commands


def cmd_login(args: argparse.Namespace) -> None:
    store = ConfigStore(args.config)
    secret = args.secret or getpass.getpass("Secret: ")
    if not secret:
        raise LocalPreconditionError("A client secret is required")

    config = Config(server=args.server, acct_id=args.account, user_id=args.user, secret=secret)
    client = WidgetServiceClient(config, timeout=args.timeout)
    check_login_and_version(config, client, __version__)
    store.write(config)
    print("Logged in", file=sys.stderr)


def cmd_logout(args: argparse.Namespace) -> None:
    store = ConfigStore(args.config)
    try:
        _, config, client = connect(args)
        client.delete(f"clients/{config['user_id']}")
    except WidgetSyncError as e:
        print(f"Warning: could not revoke the API client: {e.message}", file=sys.stderr)
    store.unlink()
    print("Logged out", file=sys.stderr)


def cmd_info(args: argparse.Namespace) -> None:
    _, config, _ = connect(args)
    print(f"Currently logged in to account {config['acct_id']} on world {config['server']}")
    if args.verbose:
        print(f"Server info: {json.dumps(config.get('info', {}), indent=2)}")


# Widget commands


def cmd_widget_list(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    kind = "engagement" if args.engagement else "interaction" if args.interaction else None
    rows = WidgetPipeline(client).list_widgets(kind, args.global_scope)
    print(format_table(rows, ["id", "type", "version", "draft", "acct_id", "name"]))


def cmd_widget_push(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    policy = SyncPolicy(discard_ids_on_scope_change=args.discard_ids_on_scope_change)
    WidgetPipeline(client, policy).push(Path(args.directory), args.global_scope)


def cmd_widget_pull(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    directory = Path(args.directory) if args.directory else None
    WidgetPipeline(client).pull(args.widget_id, directory, args.ver, args.global_scope)


def cmd_widget_activate(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    WidgetPipeline(client).activate(args.widget_id, args.version, args.global_scope)
    print(f"activated version {args.version} of {args.widget_id}", file=sys.stderr)


def cmd_widget_delete(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    WidgetPipeline(client).delete(args.widget_id, args.ver, args.global_scope)
    what = f"version {args.ver} of " if args.ver is not None else ""
    print(f"deleted {what}{args.widget_id}", file=sys.stderr)


# String commands


def cmd_strings_push(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    pipeline = WidgetPipeline(client)
    for file_path in args.files:
        strings = pipeline.load_strings(Path(file_path))
        pipeline.coordinator.sync_account_strings(strings, args.global_scope)


def cmd_strings_pull(args: argparse.Namespace) -> None:
    _, _, client = connect(args)
    strings = UploadCoordinator(client).fetch_strings(args.prefix, args.global_scope)
    json.dump(strings, sys.stdout, indent=2, ensure_ascii=False)
    print()


def cmd_strings_export(args: argparse.Namespace) -> None:
    written = export_catalog_files(
        [Path(f) for f in args.files],
        project=args.project,
        language=args.language,
        id_prefix=args.prefix,
        output_basename=args.output,
        reference_language=args.reference,
        output_dir=Path(args.dir),
    )
    for path in written:
        print(f"wrote {path}", file=sys.stderr)


def cmd_strings_import(args: argparse.Namespace) -> None:
    merge_base = load_catalog_file(Path(args.merge_base)) if args.merge_base else None
    strings = import_catalog_files([Path(f) for f in args.files], merge_base, args.filter)
    if args.output:
        save_catalog_file(Path(args.output), strings)
        print(f"wrote {args.output}", file=sys.stderr)
    else:
        json.dump(strings, sys.stdout, indent=2, ensure_ascii=False)
        print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="widget-sync",
        description="Manage widgets and translation strings on the widget service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Store credentials
  widget-sync login --server world.example.com --account acme --user client-id

  # Push the widget in the current directory
  widget-sync widget push

  # Export strings for translators, then import the translated files
  widget-sync strings export strings.json --project popup1 --reference en
  widget-sync strings import strings.it.po strings.fr.po --merge-base strings.json -o strings.json
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="Config file (default ~/.vvc/config.json)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Store API client credentials")
    login.add_argument("--server", required=True, help="Service host name")
    login.add_argument("--account", required=True, help="Account id")
    login.add_argument("--user", required=True, help="API client id")
    login.add_argument("--secret", help="API client secret (prompted when omitted)")
    login.set_defaults(func=cmd_login)

    commands.add_parser("logout", help="Revoke and forget the stored credentials").set_defaults(func=cmd_logout)
    commands.add_parser("info", help="Show the current login").set_defaults(func=cmd_info)

    # widget
    widget = commands.add_parser("widget", help="Manage widgets").add_subparsers(dest="widget_command", required=True)

    def widget_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = widget.add_parser(name, help=help_text)
        sub.add_argument("-g", "--global", dest="global_scope", action="store_true", help="Use the global scope")
        sub.set_defaults(scope_resource="Widget")
        return sub

    list_cmd = widget_command("list", "Display a list of available widgets")
    kinds = list_cmd.add_mutually_exclusive_group()
    kinds.add_argument("-e", "--engagement", action="store_true", help="Only list engagement widgets")
    kinds.add_argument("-i", "--interaction", action="store_true", help="Only list interaction widgets")
    list_cmd.set_defaults(func=cmd_widget_list)

    push = widget_command("push", "Push a new version of the widget")
    push.add_argument("-d", "--directory", default=".", help="Widget directory (default: current)")
    push.add_argument(
        "--discard-ids-on-scope-change",
        action="store_true",
        help="Re-upload every asset when pushing a widget to a different scope",
    )
    push.set_defaults(func=cmd_widget_push)

    pull = widget_command("pull", "Pull a version of the widget")
    pull.add_argument("widget_id")
    pull.add_argument("-d", "--directory", help="Destination directory (default: ./<widget_id>)")
    pull.add_argument("--ver", help="Version to pull (default: active)")
    pull.set_defaults(func=cmd_widget_pull)

    activate = widget_command("activate", "Activate a widget version")
    activate.add_argument("widget_id")
    activate.add_argument("version")
    activate.set_defaults(func=cmd_widget_activate)

    delete = widget_command("delete", "Delete a widget or one of its versions")
    delete.add_argument("widget_id")
    delete.add_argument("--ver", help="Only delete this version")
    delete.set_defaults(func=cmd_widget_delete)

    # strings
    strings = commands.add_parser("strings", help="Manage translation strings").add_subparsers(
        dest="strings_command", required=True
    )

    strings_push = strings.add_parser("push", help="Push string catalogs")
    strings_push.add_argument("files", nargs="+", help=f"Catalog files (like {STRINGS_FILE})")
    strings_push.add_argument("-g", "--global", dest="global_scope", action="store_true", help="Push as global strings")
    strings_push.set_defaults(func=cmd_strings_push, scope_resource="String")

    strings_pull = strings.add_parser("pull", help="Pull strings to stdout")
    strings_pull.add_argument("-p", "--prefix", default="", help="Only pull strings starting with prefix")
    strings_pull.add_argument("-g", "--global", dest="global_scope", action="store_true", help="Pull global strings")
    strings_pull.set_defaults(func=cmd_strings_pull, scope_resource="String")

    export = strings.add_parser("export", help="Write one PO file per language")
    export.add_argument("files", nargs="+", help="Catalog files")
    export.add_argument("--project", required=True, help="Project name for the PO header")
    export.add_argument("-l", "--language", help="Only export this language")
    export.add_argument("-p", "--prefix", help="Only export strings starting with prefix")
    export.add_argument("-o", "--output", default="strings", help="Output basename (default: strings)")
    export.add_argument("-r", "--reference", help="Add this language as reference for translators")
    export.add_argument("--dir", default=".", help="Output directory (default: current)")
    export.set_defaults(func=cmd_strings_export)

    import_cmd = strings.add_parser("import", help="Merge PO files into a catalog")
    import_cmd.add_argument("files", nargs="+", help="PO files")
    import_cmd.add_argument("-m", "--merge-base", help="Catalog to merge the translations into")
    import_cmd.add_argument("-f", "--filter", help="Only import strings starting with prefix")
    import_cmd.add_argument("-o", "--output", help="Write the catalog here instead of stdout")
    import_cmd.set_defaults(func=cmd_strings_import)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the widget-sync command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        args.func(args)
    except WidgetSyncError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if args.verbose and e.cause is not None:
            print(f"Caused by: {e.cause!r}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
