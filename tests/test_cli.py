import json
import logging

import pytest

from window_session import cli
from window_session.snapshot import SCHEMA

from conftest import FakeDesktop, make_window


@pytest.fixture
def paths(tmp_path):
    return {
        "config": str(tmp_path / "config.json"),
        "session": str(tmp_path / "session.json"),
    }


def _desktop():
    return FakeDesktop([
        make_window(1, title="a.txt - gedit", comm=["gedit", "a.txt"], state={"focused": True}),
        make_window(2, wm_class="xterm", title="bash", pid=200, comm=["xterm"], workspace=1),
    ])


def _args(cmd, paths, *extra):
    return [cmd, "--config", paths["config"], "--session", paths["session"], *extra]


def test_save_then_show(paths, capsys):
    assert cli.main(_args("save", paths), desktop=_desktop()) == 0
    out = capsys.readouterr().out
    assert f"Session saved: Saved 2 windows -> {paths['session']}" in out

    with open(paths["session"], encoding="utf-8") as f:
        assert json.load(f)["schema"] == SCHEMA

    assert cli.main(_args("show", paths)) == 0
    out = capsys.readouterr().out
    assert "gedit" in out and "xterm" in out
    assert "focused" in out
    assert "2 saved windows" in out


def test_restore_unchanged_desktop(paths, capsys):
    desktop = _desktop()
    cli.main(_args("save", paths), desktop=desktop)
    capsys.readouterr()

    assert cli.main(_args("restore", paths, "--mode", "existing"), desktop=desktop) == 0

    out = capsys.readouterr().out
    assert "Session restored" in out
    assert "Restore complete (existing). Saved=2  Matched=2  Changed=0  Launched=0" in out
    assert desktop.calls == []


def test_restore_without_session_file(paths, capsys):
    assert cli.main(_args("restore", paths), desktop=FakeDesktop()) == 1

    assert capsys.readouterr().out.strip() == "Nothing to restore"


def test_show_malformed_session_file(paths, capsys):
    with open(paths["session"], "w", encoding="utf-8") as f:
        json.dump({"schema": "window-layout.v2"}, f)

    assert cli.main(_args("show", paths)) == 1

    assert "Unrecognised session schema" in capsys.readouterr().out


def test_session_path_from_config(tmp_path, capsys):
    config = tmp_path / "config.json"
    session = tmp_path / "from-config.json"
    config.write_text(json.dumps({"session_path": str(session)}), encoding="utf-8")

    assert cli.main(["save", "--config", str(config)], desktop=_desktop()) == 0

    assert session.exists()


def test_unknown_mode_is_rejected(paths):
    with pytest.raises(SystemExit):
        cli.main(_args("restore", paths, "--mode", "everything"), desktop=FakeDesktop())


@pytest.mark.parametrize("verbose, level", [(0, "WARN"), (1, "DETAIL"), (2, "DEBUG"), (3, "DEBUG")])
def test_verbosity_overrides_config_level(verbose, level):
    config = cli.SessionConfig(log_level="WARN")

    assert cli._log_level(config, verbose) == level


def test_restore_runtime_error_exits_nonzero(paths, capsys):
    cli.main(_args("save", paths), desktop=_desktop())
    desktop = FakeDesktop([
        make_window(1, title="a.txt - gedit", comm=["gedit", "a.txt"], rect=(5, 5, 100, 100)),
        make_window(2, wm_class="xterm", title="bash", pid=200, comm=["xterm"], workspace=1),
    ])
    desktop.faults["move_resize"] = OSError("window vanished")
    capsys.readouterr()

    assert cli.main(_args("restore", paths, "--mode", "existing"), desktop=desktop) == 1

    out = capsys.readouterr().out
    assert "Runtime error: window vanished" in out
    assert "Errors=1" in out


def test_save_runtime_error_exits_nonzero(paths, capsys):
    desktop = _desktop()
    desktop.faults["windows"] = OSError("desktop unavailable")

    assert cli.main(_args("save", paths), desktop=desktop) == 1

    assert capsys.readouterr().out.strip() == "Runtime error: desktop unavailable"


def test_log_file_option_writes_the_log(paths, tmp_path):
    log_file = tmp_path / "logs" / "window-session.log"

    assert cli.main(_args("save", paths, "--log-file", str(log_file)), desktop=_desktop()) == 0

    for handler in logging.getLogger("window_session").handlers:
        handler.close()
    assert f"Saved 2 windows to {paths['session']}" in log_file.read_text(encoding="utf-8")
