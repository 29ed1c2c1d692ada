"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from menukeeper.config import (
    ConfigError,
    ConfigManager,
    MenuKeeperConfig,
    parse_override_pairs,
    resolve_with_precedence,
)


def _fresh_manager(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env: dict[str, str] | None = None
) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env=env or {})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".menukeeper" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "menukeeper settings file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, MenuKeeperConfig)
    assert config.organization.quarantine_folder == "Unsorted"
    assert config.scanning.workers == 5


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env = {
        "MENUKEEPER__SCANNING__WORKERS": "3",
        "MENUKEEPER__ORGANIZATION__QUARANTINE_FOLDER": "FromEnv",
        "UNRELATED": "ignored",
    }
    manager = _fresh_manager(tmp_path, monkeypatch, env)
    manager.save(
        {
            "organization": {"quarantine_folder": "FromFile"},
            "archive": {"keep": 2},
        }
    )

    config = manager.load(cli_overrides={"organization.quarantine_folder": "FromCli"})

    assert config.archive.keep == 2
    assert config.scanning.workers == 3
    # CLI overrides take precedence over environment
    assert config.organization.quarantine_folder == "FromCli"


def test_env_overrides_can_be_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch, {"MENUKEEPER__SCANNING__BACKEND": "json"})

    assert manager.load().scanning.backend == "json"
    assert manager.load(include_env=False).scanning.backend == "auto"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=MenuKeeperConfig(),
            file_overrides={"scanning": {"workers": "not-an-int"}},
        )


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=MenuKeeperConfig(),
            cli_overrides={"organization.colour": "blue"},
        )


def test_parse_override_pairs() -> None:
    overrides = parse_override_pairs(["scanning.workers=2", "archive.enabled=false"])

    assert overrides == {"scanning.workers": 2, "archive.enabled": False}
    with pytest.raises(ConfigError):
        parse_override_pairs(["missing-separator"])
