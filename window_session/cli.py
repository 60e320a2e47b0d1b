"""
Command line:

    window-session save     [--session PATH]
    window-session restore  [--session PATH] [--mode existing|matching|missing]
    window-session show     [--session PATH]

Common options: --config PATH (default config.json), --log-file PATH, -v / -vv.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import CONFIG_PATH, SessionConfig, load_config
from .desktop import Desktop
from .errors import NothingToRestore, SnapshotError
from .log import configure_logging
from .records import STATE_FLAGS
from .session import RestoreMode, Session
from .snapshot import capture_windows, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


def _print_notifier(title: str, message: str) -> None:
    print(f"{title}: {message}")


def _default_desktop() -> Desktop:
    from .win32_desktop import Win32Desktop
    return Win32Desktop()


def _log_level(config: SessionConfig, verbose: int) -> str:
    if verbose >= 2:
        return "DEBUG"
    if verbose == 1:
        return "DETAIL"
    return config.log_level


# ══════════════════════════════════════════════════════════════════════════
#  Commands
# ══════════════════════════════════════════════════════════════════════════
def save_session(config: SessionConfig, desktop: Desktop) -> int:
    windows = capture_windows(desktop, config.launchers)
    count = save_snapshot(config.session_file, windows.values())
    _print_notifier("Session saved", f"Saved {count} windows -> {config.session_file}")
    return 0


def restore_session(config: SessionConfig, desktop: Desktop, mode: RestoreMode) -> int:
    session = Session(config, desktop, notify=_print_notifier)
    report = session.restore(mode)
    print(
        f"Restore complete ({mode.value}). Saved={report.saved}  Matched={report.matched}  "
        f"Changed={report.changed}  Launched={report.launched}  Errors={report.errors}"
    )
    return 1 if report.errors else 0


def show_session(config: SessionConfig) -> int:
    windows = load_snapshot(config.session_file)
    for w in sorted(windows.values(), key=lambda w: (w.workspace, w.wm_class, w.id)):
        flags = ",".join(f for f in STATE_FLAGS if w.state[f]) or "-"
        print(f"  {w.wm_class:<24} {w.id:>10}  ws={w.workspace}  {w.geometry:<22} "
              f"{flags:<24} {w.command}")
    print(f"{len(windows)} saved windows in {config.session_file}")
    return 0


# ══════════════════════════════════════════════════════════════════════════
#  Entry point
# ══════════════════════════════════════════════════════════════════════════
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="window-session",
        description="Save and restore the desktop's window session.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config",  default=CONFIG_PATH,
                        help="JSON settings file (default: %(default)s)")
    common.add_argument("--session", default=None,
                        help="Session file (overrides session_path from the config)")
    common.add_argument("--log-file", default=None,
                        help="Also write the log, at DEBUG, to this file")
    common.add_argument("--verbose", "-v", action="count", default=0)

    s = p.add_subparsers(dest="cmd", required=True)
    s.add_parser("save", parents=[common], help="Save the current windows")

    sp = s.add_parser("restore", parents=[common], help="Restore the saved windows")
    sp.add_argument("--mode", choices=[m.value for m in RestoreMode],
                    default=RestoreMode.MISSING.value,
                    help="existing: only windows still open; matching: also "
                         "similar windows; missing: also launch what is gone "
                         "(default)")

    s.add_parser("show", parents=[common], help="List the saved windows")
    return p


def main(argv: Optional[List[str]] = None, desktop: Optional[Desktop] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.session:
        config.session_path = args.session
    if args.log_file:
        config.log_file = args.log_file
    configure_logging(_log_level(config, args.verbose), log_file=config.log_file)

    try:
        if args.cmd == "show":
            return show_session(config)
        desktop = desktop if desktop is not None else _default_desktop()
        if args.cmd == "save":
            return save_session(config, desktop)
        return restore_session(config, desktop, RestoreMode(args.mode))
    except NothingToRestore:
        print("Nothing to restore")
        return 1
    except SnapshotError as exc:
        print(str(exc))
        return 1
    except Exception as exc:
        logger.exception("Runtime error: %s", exc)
        _print_notifier("Runtime error", str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
