"""Configuration: env, settings files, hook storage path, permission level."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from hookgate.hooks.errors import ConfigError
from hookgate.hooks.models import DEFAULT_TIMEOUT, MAX_TIMEOUT, PermissionLevel

# Both directory names are recognised as project config dirs.
PROJECT_DIR_NAMES = (".hookgate", ".claude")

TRUTHY = ("1", "true", "yes", "on")


@dataclass
class Config:
    cwd: Path = field(default_factory=Path.cwd)
    global_dir: Path = field(default_factory=lambda: Path.home() / ".hookgate")
    project_dir: Path | None = None  # explicit override; None = auto-detect from cwd
    hooks_file: Path | None = None  # None = <global_dir>/hooks.json
    permission_level: PermissionLevel = PermissionLevel.WITH_WARNING
    non_interactive: bool = False
    default_timeout: float = DEFAULT_TIMEOUT
    auto_save: bool = True
    verbose: bool = False

    def __post_init__(self) -> None:
        self.permission_level = PermissionLevel(self.permission_level)
        if self.hooks_file is None:
            self.hooks_file = self.global_dir / "hooks.json"
        self.hooks_file = Path(self.hooks_file).expanduser()

    @property
    def interactive(self) -> bool:
        if self.non_interactive:
            return False
        return sys.stdin is not None and sys.stdin.isatty()

    @property
    def project_dirs(self) -> list[Path]:
        if self.project_dir is not None:
            return [self.project_dir] if self.project_dir.is_dir() else []
        return [self.cwd / name for name in PROJECT_DIR_NAMES if (self.cwd / name).is_dir()]


def _permission_level(value: object, source: str) -> PermissionLevel:
    try:
        return PermissionLevel(value)
    except ValueError:
        levels = ", ".join(level.value for level in PermissionLevel)
        raise ConfigError(
            f"{source}: permission level must be one of {levels}, got {value!r}"
        ) from None


def _timeout(value: object, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{source}: timeout must be a number of seconds, got {value!r}") from None
    if not 0 < timeout <= MAX_TIMEOUT:
        raise ConfigError(
            f"{source}: timeout must be in (0, {MAX_TIMEOUT:g}] seconds, got {value!r}"
        )
    return timeout


def _apply_settings(config: Config, path: Path) -> None:
    """Apply a single settings.json file to config."""
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"{path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: settings must be a JSON object")
    if "permissionLevel" in data:
        config.permission_level = _permission_level(data["permissionLevel"], str(path))
    if "hooksFile" in data:
        hooks_file = Path(data["hooksFile"]).expanduser()
        config.hooks_file = hooks_file if hooks_file.is_absolute() else path.parent / hooks_file
    if "defaultTimeout" in data:
        config.default_timeout = _timeout(data["defaultTimeout"], str(path))
    if "nonInteractive" in data:
        config.non_interactive = bool(data["nonInteractive"])
    if "autoSave" in data:
        config.auto_save = bool(data["autoSave"])


def load_config(
    hooks_file: str | Path | None = None,
    permission_level: str | None = None,
    verbose: bool = False,
    cwd: Path | None = None,
) -> Config:
    """Load config with priority: CLI args > env > .env > settings.json > defaults.

    Raises ConfigError when a settings file or env var holds an unusable value.
    """
    load_dotenv()

    config = Config(cwd=cwd) if cwd else Config()
    config.verbose = verbose

    _apply_settings(config, config.global_dir / "settings.json")

    for pdir in config.project_dirs:
        _apply_settings(config, pdir / "settings.json")

    for pdir in config.project_dirs:
        _apply_settings(config, pdir / "settings.local.json")

    if env_level := os.getenv("HOOKGATE_PERMISSION_LEVEL"):
        config.permission_level = _permission_level(env_level, "HOOKGATE_PERMISSION_LEVEL")
    if env_file := os.getenv("HOOKGATE_HOOKS_FILE"):
        config.hooks_file = Path(env_file).expanduser()
    if env_timeout := os.getenv("HOOKGATE_DEFAULT_TIMEOUT"):
        config.default_timeout = _timeout(env_timeout, "HOOKGATE_DEFAULT_TIMEOUT")
    if env_ni := os.getenv("HOOKGATE_NON_INTERACTIVE"):
        config.non_interactive = env_ni.strip().lower() in TRUTHY

    if hooks_file:
        config.hooks_file = Path(hooks_file).expanduser()
    if permission_level:
        config.permission_level = _permission_level(permission_level, "--level")

    return config
