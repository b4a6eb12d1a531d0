"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from passrunner.config import (
    ConfigError,
    ConfigManager,
    PassRunnerConfig,
    RuntimeSettings,
    SettingsLoader,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env={})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".passrunner" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "passrunner configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, PassRunnerConfig)
    assert config.store.command == "pass"
    assert config.store.clip_timeout_seconds == 45
    assert config.store.otp_identifier == "totp::"
    assert config.actions.show_actions is False


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"store": {"command": "gopass", "clip_timeout_seconds": 30}})

    env = {"PASSRUNNER__QUERY__MIN_LENGTH": "5", "PASSRUNNER__STORE__CLIP_TIMEOUT_SECONDS": "20"}
    cli = {"store.clip_timeout_seconds": 10}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.store.command == "gopass"
    assert config.query.min_length == 5
    # CLI overrides take precedence over environment
    assert config.store.clip_timeout_seconds == 10


def test_password_store_variables_override_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"store": {"directory": "/elsewhere", "clip_timeout_seconds": 30}})

    env = {
        "PASSWORD_STORE_DIR": str(tmp_path / "store"),
        "PASSWORD_STORE_CLIP_TIME": "12",
        "PASSWORD_STORE_OTP_IDENTIFIER": "otp-",
    }
    config = manager.load(env_overrides=env)

    assert config.store.directory == str(tmp_path / "store")
    assert config.store.clip_timeout_seconds == 12
    assert config.store.otp_identifier == "otp-"


def test_unparseable_clip_time_is_ignored(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"store": {"clip_timeout_seconds": 30}})

    config = manager.load(env_overrides={"PASSWORD_STORE_CLIP_TIME": "soon"})

    assert config.store.clip_timeout_seconds == 30


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"store": {"colour": "blue"}})

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_covers_defaults() -> None:
    flat = flatten_for_env(PassRunnerConfig())

    assert flat["PASSRUNNER__STORE__COMMAND"] == "pass"
    assert flat["PASSRUNNER__STORE__CLIP_TIMEOUT_SECONDS"] == "45"
    assert flat["PASSRUNNER__STORE__DIRECTORY"] == "null"
    assert flat["PASSRUNNER__ACTIONS__GROUPS"] == "[]"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=PassRunnerConfig(),
            file_overrides={"store": {"clip_timeout_seconds": "not-an-int"}},
        )


def test_action_names_must_not_be_blank() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=PassRunnerConfig(),
            file_overrides={"actions": {"groups": [{"name": "  ", "regex": "(.*)"}]}},
        )


def test_logging_level_is_normalized() -> None:
    config = resolve_with_precedence(
        defaults=PassRunnerConfig(), file_overrides={"logging": {"level": "debug"}}
    )

    assert config.logging.level == "DEBUG"


def test_runtime_settings_from_config_defaults_store_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    settings = RuntimeSettings.from_config(PassRunnerConfig())

    assert settings.store_dir == tmp_path / ".password-store"
    assert settings.clip_timeout == 45
    assert settings.actions == ()


def test_settings_loader_reload_publishes_new_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"store": {"clip_timeout_seconds": 30}})
    loader = SettingsLoader(manager)

    first = loader.current
    manager.save(
        {
            "store": {"clip_timeout_seconds": 5},
            "actions": {
                "show_actions": True,
                "groups": [{"name": "user", "regex": "^user: (.*)$"}],
            },
        }
    )
    second = loader.reload()

    assert first.clip_timeout == 30
    assert second.clip_timeout == 5
    assert second.show_actions is True
    assert [action.name for action in second.actions] == ["user"]
    assert loader.current is second
