"""Tests for config: defaults, settings files, env overrides, CLI priority."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from hookgate.core.config import Config, _apply_settings, load_config
from hookgate.hooks import ConfigError, HookManager, JsonFileStore, PermissionLevel


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Point HOME at tmp_path and clear HOOKGATE_* env vars."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    for var in (
        "HOOKGATE_PERMISSION_LEVEL",
        "HOOKGATE_HOOKS_FILE",
        "HOOKGATE_DEFAULT_TIMEOUT",
        "HOOKGATE_NON_INTERACTIVE",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return home


class TestConfigDefaults:
    def test_defaults(self, tmp_path):
        c = Config(global_dir=tmp_path)
        assert c.permission_level is PermissionLevel.WITH_WARNING
        assert c.hooks_file == tmp_path / "hooks.json"
        assert c.default_timeout == 60.0
        assert c.auto_save is True

    def test_level_string_coerced(self, tmp_path):
        assert Config(global_dir=tmp_path, permission_level="safe-only").permission_level is (
            PermissionLevel.SAFE_ONLY
        )

    def test_non_interactive_flag(self, tmp_path):
        assert Config(global_dir=tmp_path, non_interactive=True).interactive is False

    def test_interactive_requires_tty(self, tmp_path):
        with patch("hookgate.core.config.sys.stdin") as stdin:
            stdin.isatty.return_value = False
            assert Config(global_dir=tmp_path).interactive is False
            stdin.isatty.return_value = True
            assert Config(global_dir=tmp_path).interactive is True

    def test_project_dirs_detected(self, tmp_path):
        (tmp_path / ".claude").mkdir()
        (tmp_path / ".hookgate").mkdir()
        c = Config(cwd=tmp_path, global_dir=tmp_path / "g")
        assert c.project_dirs == [tmp_path / ".hookgate", tmp_path / ".claude"]


class TestApplySettings:
    def test_all_keys(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps(
                {
                    "permissionLevel": "disabled",
                    "hooksFile": "/srv/hooks.json",
                    "defaultTimeout": 5,
                    "nonInteractive": True,
                    "autoSave": False,
                }
            )
        )
        c = Config(global_dir=tmp_path)
        _apply_settings(c, path)
        assert c.permission_level is PermissionLevel.DISABLED
        assert c.hooks_file == Path("/srv/hooks.json")
        assert c.default_timeout == 5.0
        assert c.non_interactive is True
        assert c.auto_save is False

    def test_relative_hooks_file(self, tmp_path):
        pdir = tmp_path / ".hookgate"
        pdir.mkdir()
        (pdir / "settings.json").write_text(json.dumps({"hooksFile": "hooks.json"}))
        c = Config(global_dir=tmp_path / "g")
        _apply_settings(c, pdir / "settings.json")
        assert c.hooks_file == pdir / "hooks.json"

    def test_missing_file_is_ignored(self, tmp_path):
        c = Config(global_dir=tmp_path)
        _apply_settings(c, tmp_path / "nope.json")
        assert c.permission_level is PermissionLevel.WITH_WARNING


class TestLoadConfig:
    def test_global_settings(self, isolated):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text(json.dumps({"permissionLevel": "safe-only"}))
        assert load_config().permission_level is PermissionLevel.SAFE_ONLY

    def test_project_overrides_global_and_local_overrides_project(self, isolated, tmp_path):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text(json.dumps({"defaultTimeout": 1}))
        pdir = tmp_path / ".claude"
        pdir.mkdir()
        (pdir / "settings.json").write_text(json.dumps({"defaultTimeout": 2}))
        assert load_config(cwd=tmp_path).default_timeout == 2.0
        (pdir / "settings.local.json").write_text(json.dumps({"defaultTimeout": 3}))
        assert load_config(cwd=tmp_path).default_timeout == 3.0

    def test_env_overrides_settings(self, isolated, monkeypatch, tmp_path):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text(json.dumps({"permissionLevel": "safe-only"}))
        monkeypatch.setenv("HOOKGATE_PERMISSION_LEVEL", "disabled")
        monkeypatch.setenv("HOOKGATE_HOOKS_FILE", str(tmp_path / "env-hooks.json"))
        monkeypatch.setenv("HOOKGATE_DEFAULT_TIMEOUT", "7.5")
        monkeypatch.setenv("HOOKGATE_NON_INTERACTIVE", "yes")
        c = load_config()
        assert c.permission_level is PermissionLevel.DISABLED
        assert c.hooks_file == tmp_path / "env-hooks.json"
        assert c.default_timeout == 7.5
        assert c.non_interactive is True

    def test_cli_args_win(self, isolated, monkeypatch, tmp_path):
        monkeypatch.setenv("HOOKGATE_PERMISSION_LEVEL", "disabled")
        c = load_config(hooks_file=tmp_path / "cli.json", permission_level="with-warning")
        assert c.permission_level is PermissionLevel.WITH_WARNING
        assert c.hooks_file == tmp_path / "cli.json"

    def test_bad_env_level(self, isolated, monkeypatch):
        monkeypatch.setenv("HOOKGATE_PERMISSION_LEVEL", "unrestricted")
        with pytest.raises(ConfigError, match="HOOKGATE_PERMISSION_LEVEL"):
            load_config()

    def test_bad_env_timeout(self, isolated, monkeypatch):
        monkeypatch.setenv("HOOKGATE_DEFAULT_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="HOOKGATE_DEFAULT_TIMEOUT"):
            load_config()

    def test_bad_settings_level(self, isolated):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text(json.dumps({"permissionLevel": "yolo"}))
        with pytest.raises(ConfigError, match="permission level must be one of"):
            load_config()

    def test_settings_timeout_out_of_range(self, isolated):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text(json.dumps({"defaultTimeout": 0}))
        with pytest.raises(ConfigError, match="timeout"):
            load_config()

    def test_corrupt_settings(self, isolated):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text("{oops")
        with pytest.raises(ConfigError, match="settings.json"):
            load_config()

    def test_settings_not_an_object(self, isolated):
        gdir = isolated / ".hookgate"
        gdir.mkdir()
        (gdir / "settings.json").write_text("[]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config()


class TestManagerFromConfig:
    def test_wires_config(self, tmp_path):
        c = Config(
            global_dir=tmp_path,
            permission_level="safe-only",
            default_timeout=3,
            non_interactive=True,
            auto_save=False,
        )
        manager = HookManager.from_config(c)
        assert isinstance(manager.store, JsonFileStore)
        assert manager.store.path == tmp_path / "hooks.json"
        assert manager.permission_level is PermissionLevel.SAFE_ONLY
        assert manager.default_timeout == 3
        assert manager.consent.interactive is False
        assert manager.auto_save is False
