"""CLI integration tests for save, display and enforce."""

from __future__ import annotations

import json
import os
from pathlib import Path

from click.testing import CliRunner

from menukeeper.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME set and the portable backend selected.
    """
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env["MENUKEEPER__SCANNING__BACKEND"] = "json"
    return env


def _shortcut(path: Path, target: str | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"target_path": target}) if target else "", encoding="utf-8")


def _menu(tmp_path: Path) -> Path:
    root = tmp_path / "menu"
    _shortcut(root / "Programs" / "Chrome.lnk", "C:\\chrome.exe")
    _shortcut(root / "Programs" / "Dev" / "VSCode.lnk", "C:\\Code.exe")
    return root


def _layout_path(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".menukeeper" / "layout.json"


def test_cli_help_displays_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Start Menu" in result.output
    for command in ("display", "save", "enforce", "config"):
        assert command in result.output


def test_save_writes_layout_archive_and_log(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)

    result = CliRunner().invoke(cli, ["save", str(root)], env=env)

    assert result.exit_code == 0, result.output
    layout = json.loads(_layout_path(tmp_path).read_text(encoding="utf-8"))
    assert layout == {
        "Programs": {"Chrome.lnk": {"target_path": "C:\\chrome.exe"}},
        "Programs\\Dev": {"VSCode.lnk": {"target_path": "C:\\Code.exe"}},
    }
    archives = list((tmp_path / "home" / ".menukeeper" / "archives").iterdir())
    assert len(archives) == 1 and archives[0].suffix == ".zip"
    log_text = (tmp_path / "home" / ".menukeeper" / "menukeeper.log").read_text(encoding="utf-8")
    assert "Saved 2 shortcuts" in log_text


def test_save_twice_reports_no_changes(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["save", str(root), "--no-archive"], env=env)
    before = _layout_path(tmp_path).read_text(encoding="utf-8")

    result = runner.invoke(cli, ["save", str(root), "--no-archive", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["changed"] is False
    assert payload["archive"] is None
    assert _layout_path(tmp_path).read_text(encoding="utf-8") == before


def test_display_round_trips_saved_structure(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["save", str(root), "--no-archive"], env=env)

    result = runner.invoke(cli, ["display", "--json"], env=env)

    assert result.exit_code == 0, result.output
    shown = json.loads(result.output)
    assert {folder: sorted(items) for folder, items in shown.items()} == {
        "Programs": ["Chrome.lnk"],
        "Programs\\Dev": ["VSCode.lnk"],
    }


def test_display_without_layout_fails(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["display"], env=_env_with_home(tmp_path))

    assert result.exit_code != 0
    assert "menukeeper save" in result.output


def test_enforce_with_malformed_layout_fails_before_changes(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    _shortcut(root / "Stray.lnk")
    env = _env_with_home(tmp_path)
    layout_path = _layout_path(tmp_path)
    layout_path.parent.mkdir(parents=True)
    layout_path.write_text('{"Programs": 3}', encoding="utf-8")

    result = CliRunner().invoke(cli, ["enforce", str(root), "--yes"], env=env)

    assert result.exit_code != 0
    assert (root / "Stray.lnk").exists()


def test_enforce_dry_run_leaves_tree_untouched(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["save", str(root), "--no-archive"], env=env)
    (root / "Programs" / "Chrome.lnk").rename(root / "Chrome v121.lnk")

    result = runner.invoke(cli, ["enforce", str(root), "--dry-run", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"]["moves"] == 1
    assert payload["plan"]["moves"][0]["name"] == "Chrome v121.lnk"
    assert (root / "Chrome v121.lnk").exists()


def test_enforce_asks_for_confirmation(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["save", str(root), "--no-archive"], env=env)
    _shortcut(root / "Stray.lnk")

    result = runner.invoke(cli, ["enforce", str(root)], env=env, input="n\n")

    assert result.exit_code == 0, result.output
    assert "Cancelled" in result.output
    assert (root / "Stray.lnk").exists()


def test_enforce_unattended_restores_layout(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["save", str(root), "--no-archive"], env=env)
    (root / "Programs" / "Dev" / "VSCode.lnk").rename(root / "VSCode.lnk")
    (root / "Programs" / "Chrome.lnk").unlink()
    _shortcut(root / "Games" / "Stray.lnk")

    result = runner.invoke(cli, ["enforce", str(root), "--yes"], env=env)

    assert result.exit_code == 0, result.output
    assert (root / "Programs" / "Dev" / "VSCode.lnk").exists()
    assert (root / "Programs" / "Chrome.lnk").exists()
    assert (root / "Unsorted" / "Stray.lnk").exists()
    assert not (root / "Games").exists()

    again = runner.invoke(cli, ["enforce", str(root), "--yes"], env=env)
    assert again.exit_code == 0
    assert "already matches" in again.output


def test_set_option_overrides_settings_for_one_run(tmp_path: Path) -> None:
    root = _menu(tmp_path)
    env = _env_with_home(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["save", str(root), "--no-archive"], env=env)
    _shortcut(root / "Stray.lnk")

    result = runner.invoke(
        cli,
        ["--set", "organization.quarantine_folder=Inbox", "enforce", str(root), "--yes"],
        env=env,
    )

    assert result.exit_code == 0, result.output
    assert (root / "Inbox" / "Stray.lnk").exists()


def test_json_enforce_requires_dry_run_or_yes(tmp_path: Path) -> None:
    root = _menu(tmp_path)

    result = CliRunner().invoke(cli, ["enforce", str(root), "--json"], env=_env_with_home(tmp_path))

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "cli_error"
