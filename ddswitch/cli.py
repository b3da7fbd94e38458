from __future__ import annotations

import argparse
import json
import os
import shlex
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Callable

from . import __version__
from .runtime.error_codes import ErrorCode
from .runtime.errors import ParseError, SwitchError
from .runtime.event_bus import EventFilter, EventLogAppendError
from .runtime.json_io import parse_json_text
from .runtime.protocol import EventKind
from .runtime.switcher import ProfileSwitcher
from .ui.console_ui import ConsoleUI, UIEvent, UIEventKind

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_CONFLICT = 3
EXIT_INVALID = 4
EXIT_CONFIG_ERROR = 5

_EXIT_BY_CODE = {
    ErrorCode.NOT_FOUND: EXIT_NOT_FOUND,
    ErrorCode.CONFLICT: EXIT_CONFLICT,
    ErrorCode.BAD_REQUEST: EXIT_INVALID,
}


def _configure_text_io() -> None:
    try:
        if hasattr(sys.stdin, "reconfigure"):
            sys.stdin.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="backslashreplace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="backslashreplace")
    except Exception:
        return


def _is_tty() -> bool:
    try:
        return bool(sys.stdin.isatty() and sys.stdout.isatty())
    except Exception:
        return False


def _open_switcher() -> tuple[ProfileSwitcher, ConsoleUI]:
    switcher = ProfileSwitcher.open_default()
    ui = ConsoleUI(stream=sys.stdout, err_stream=sys.stderr, enable_color=_is_tty())
    status_kinds = {k.value for k in EventKind if k is not EventKind.OPERATION_FAILED}
    switcher.event_bus.subscribe(ui.on_runtime_event, EventFilter(kinds=status_kinds))
    return switcher, ui


def _exit_code_for(exc: SwitchError) -> int:
    return _EXIT_BY_CODE.get(exc.code, EXIT_ERROR)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ddswitch",
        description="Switch the active model profile of ~/.factory/settings.json.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List profiles and mark the current one.")
    list_parser.add_argument("--json", action="store_true", help="Print machine-readable output.")
    list_parser.set_defaults(func=_cmd_list)

    current_parser = subparsers.add_parser("current", help="Print the profile matching the live settings.")
    current_parser.set_defaults(func=_cmd_current)

    apply_parser = subparsers.add_parser("apply", help="Activate a profile into the live settings.")
    apply_parser.add_argument("profile", help="Profile name or path.")
    apply_parser.set_defaults(func=_cmd_apply)

    show_parser = subparsers.add_parser("show", help="Print a profile document.")
    show_parser.add_argument("profile", help="Profile name or path.")
    show_parser.set_defaults(func=_cmd_show)

    edit_parser = subparsers.add_parser("edit", help="Replace a profile document.")
    edit_parser.add_argument("profile", help="Profile name or path.")
    edit_parser.add_argument(
        "--file",
        default=None,
        help="Read the new content from FILE ('-' for stdin). Default: open $VISUAL / $EDITOR.",
    )
    edit_parser.set_defaults(func=_cmd_edit)

    create_parser = subparsers.add_parser("create", help="Create an empty profile.")
    create_parser.add_argument("name", help="Profile name.")
    create_parser.set_defaults(func=_cmd_create)

    rename_parser = subparsers.add_parser("rename", help="Rename a profile.")
    rename_parser.add_argument("profile", help="Profile name or path.")
    rename_parser.add_argument("new_name", help="New profile name.")
    rename_parser.set_defaults(func=_cmd_rename)

    delete_parser = subparsers.add_parser("delete", help="Delete a profile.")
    delete_parser.add_argument("profile", help="Profile name or path.")
    delete_parser.set_defaults(func=_cmd_delete)

    duplicate_parser = subparsers.add_parser("duplicate", help="Copy a profile to '<name>-copy'.")
    duplicate_parser.add_argument("profile", help="Profile name or path.")
    duplicate_parser.set_defaults(func=_cmd_duplicate)

    import_parser = subparsers.add_parser("import", help="Save the live customModels as a new profile.")
    import_parser.set_defaults(func=_cmd_import)

    order_parser = subparsers.add_parser("order", help="Show or set the menu order.")
    order_parser.add_argument("names", nargs="*", help="Profile names, first shown first.")
    order_parser.add_argument("--reset", action="store_true", help="Clear the custom order.")
    order_parser.set_defaults(func=_cmd_order)

    config_parser = subparsers.add_parser("config", help="Show or change application settings.")
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument("--profiles-dir", default=None, help="Store profiles in DIR.")
    config_group.add_argument(
        "--reset-profiles-dir",
        action="store_true",
        help="Go back to the default profiles directory.",
    )
    config_parser.set_defaults(func=_cmd_config)

    log_parser = subparsers.add_parser("log", help="Print recent profile operations.")
    log_parser.add_argument("-n", "--limit", type=int, default=20, help="Number of events (default: 20).")
    log_parser.set_defaults(func=_cmd_log)

    menu_parser = subparsers.add_parser("menu", help="Interactive profile menu.")
    menu_parser.set_defaults(func=_cmd_menu)

    return parser


def _cmd_list(args: argparse.Namespace) -> int:
    switcher, ui = _open_switcher()
    refs = switcher.list_profiles()
    current = switcher.identify_current()
    if args.json:
        current_resolved = current.resolve() if current is not None else None
        out = [dict(ref.to_dict(), current=ref.path.resolve() == current_resolved) for ref in refs]
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return EXIT_OK
    ui.render_menu(refs, current=current)
    return EXIT_OK


def _cmd_current(_: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    current = switcher.identify_current()
    if current is None:
        print(f"No profile matches {switcher.live_path()}", file=sys.stderr)
        return EXIT_NOT_FOUND
    print(current)
    return EXIT_OK


def _cmd_apply(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    switcher.activate(switcher.resolve(args.profile))
    return EXIT_OK


def _cmd_show(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    content = switcher.read_profile(switcher.resolve(args.profile))
    sys.stdout.write(content if content.endswith("\n") else content + "\n")
    return EXIT_OK


def _read_edited_content(path: Path, original: str, source: str | None) -> str | None:
    if source == "-":
        return sys.stdin.read()
    if source is not None:
        return Path(source).expanduser().read_text(encoding="utf-8")

    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR")
    if not editor:
        print("No editor configured: set $EDITOR or pass --file.", file=sys.stderr)
        return None
    with tempfile.TemporaryDirectory(prefix="ddswitch-") as tmp:
        draft = Path(tmp) / path.name
        draft.write_text(original, encoding="utf-8")
        result = subprocess.run([*shlex.split(editor), str(draft)], check=False)
        if result.returncode != 0:
            print(f"Editor exited with status {result.returncode}; profile left unchanged.", file=sys.stderr)
            return None
        return draft.read_text(encoding="utf-8")


def _cmd_edit(args: argparse.Namespace) -> int:
    switcher, ui = _open_switcher()
    path = switcher.resolve(args.profile)
    original = switcher.read_profile(path)
    try:
        content = _read_edited_content(path, original, args.file)
    except OSError as e:
        print(f"Failed to read new content: {e}", file=sys.stderr)
        return EXIT_ERROR
    if content is None:
        return EXIT_ERROR
    if content == original:
        ui.print_status(f"No changes: {path.stem}")
        return EXIT_OK
    try:
        parse_json_text(content, source=path)
    except ParseError as e:
        ui.emit(UIEvent(UIEventKind.WARNING, {"message": f"{e}; saved anyway"}))
    switcher.save(path, content)
    return EXIT_OK


def _cmd_create(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    print(switcher.create(args.name))
    return EXIT_OK


def _cmd_rename(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    switcher.rename(switcher.resolve(args.profile), args.new_name)
    return EXIT_OK


def _cmd_delete(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    switcher.delete(switcher.resolve(args.profile))
    return EXIT_OK


def _cmd_duplicate(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    switcher.duplicate(switcher.resolve(args.profile))
    return EXIT_OK


def _cmd_import(_: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    switcher.import_current()
    return EXIT_OK


def _cmd_order(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    if args.reset:
        switcher.set_order([])
        return EXIT_OK
    if not args.names:
        for ref in switcher.list_profiles():
            print(ref.name)
        return EXIT_OK
    for name in args.names:
        switcher.resolve(name)
    switcher.set_order(list(args.names))
    return EXIT_OK


def _cmd_config(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    if args.profiles_dir is not None or args.reset_profiles_dir:
        switcher.update_settings(profiles_dir=args.profiles_dir, reset_profiles_dir=args.reset_profiles_dir)
    paths = switcher.paths
    print(f"profiles_dir\t{paths.profiles_dir}")
    print(f"live_settings\t{paths.live_path()}")
    print(f"app_settings\t{paths.app_settings_path}")
    print(f"event_log\t{paths.events_path}")
    return EXIT_OK


def _cmd_log(args: argparse.Namespace) -> int:
    switcher, _ui = _open_switcher()
    store = switcher.event_bus.event_log_store
    if store is None:
        return EXIT_OK
    for event in store.tail(args.limit):
        payload = json.dumps(event.payload, ensure_ascii=False, sort_keys=True)
        print(f"{event.timestamp}\t{event.kind}\t{payload}")
    return EXIT_OK


def _should_use_prompt_toolkit() -> bool:
    if str(os.environ.get("DDSWITCH_PLAIN_INPUT") or "").strip() in {"1", "true", "yes", "on"}:
        return False
    return _is_tty()


_MENU_COMMANDS = ["/list", "/import", "/help", "/quit"]
_MENU_HELP = "Enter a number or profile name to activate it. Commands: " + ", ".join(_MENU_COMMANDS)


def _make_menu_prompt(names: Callable[[], list[str]]) -> Callable[[], str]:
    if not _should_use_prompt_toolkit():
        return lambda: input("ddswitch> ")

    from prompt_toolkit import PromptSession
    from prompt_toolkit.completion import Completer, Completion

    class _MenuCompleter(Completer):
        def get_completions(self, document, complete_event):
            text = document.text_before_cursor
            pool = _MENU_COMMANDS if text.startswith("/") else names()
            for candidate in pool:
                if candidate.startswith(text):
                    yield Completion(candidate, start_position=-len(text))

    session = PromptSession(
        message="ddswitch> ",
        completer=_MenuCompleter(),
        bottom_toolbar=lambda: _MENU_HELP,
    )
    return session.prompt


def _cmd_menu(_: argparse.Namespace) -> int:
    switcher, ui = _open_switcher()
    refs = switcher.list_profiles()
    prompt = _make_menu_prompt(lambda: [r.name for r in refs])

    show_menu = True
    while True:
        if show_menu:
            refs = switcher.list_profiles()
            ui.render_menu(refs, current=switcher.identify_current())
        show_menu = False
        try:
            line = prompt().strip()
        except EOFError:
            return EXIT_OK
        if not line:
            continue
        if line in {"/quit", "/exit", "q"}:
            return EXIT_OK
        if line == "/help":
            ui.print_status(_MENU_HELP)
            continue
        if line == "/list":
            show_menu = True
            continue

        try:
            if line == "/import":
                switcher.import_current()
            elif line.isdigit() and 1 <= int(line) <= len(refs):
                switcher.activate(refs[int(line) - 1].path)
            else:
                switcher.activate(switcher.resolve(line))
        except SwitchError as e:
            ui.print_error(str(e))
            continue
        show_menu = True


def main(argv: list[str] | None = None) -> int:
    _configure_text_io()
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        func = getattr(args, "func")
        return int(func(args))
    except SwitchError as e:
        print(str(e), file=sys.stderr)
        return _exit_code_for(e)
    except EventLogAppendError as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except OSError as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130
