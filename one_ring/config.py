"""Configuration management for one-ring using YAML files."""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

CONFIG_DIRNAME = ".one-ring"
CONFIG_FILENAME = "config.yaml"
ROOT_ENV_VAR = "ONE_RING_ROOT"

STORAGE_ROOT_KEY = "storage.root"
BACKUPS_KEY = "storage.backups"


class Config:
    """Settings stored in ``.one-ring/config.yaml``.

    A local config (under the current directory) reads through to the global
    one in the home directory for keys it does not set. Writes only ever touch
    the selected file.
    """

    def __init__(self, use_global: bool = False) -> None:
        base = Path.home() if use_global else Path.cwd()
        self.config_file = base / CONFIG_DIRNAME / CONFIG_FILENAME

        self._settings = _read_settings(self.config_file)
        self._fallback: dict[str, Any] = {}
        global_file = Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME
        if not use_global and global_file != self.config_file:
            try:
                self._fallback = _read_settings(global_file)
            except ValueError as e:
                logger.warning("Ignoring unreadable global config", error=str(e))

        logger.debug("Config loaded", config_file=str(self.config_file), keys=len(self._settings))

    def _save(self) -> None:
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(self._settings, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error("Failed to save config", config_file=str(self.config_file), error=str(e))
            raise ValueError(f"Failed to save config to {self.config_file}: {e}") from e

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.list().get(key, default)

    def set(self, key: str, value: str) -> None:
        self._settings[key] = value
        self._save()

    def unset(self, key: str) -> None:
        if key in self._settings:
            del self._settings[key]
            self._save()

    def list(self) -> dict[str, str]:
        """Effective settings, local values overriding global ones."""
        return {**self._fallback, **self._settings}


def _read_settings(path: Path) -> dict[str, Any]:
    """Load a settings file; a missing file means no settings."""
    try:
        with open(path, "r") as f:
            settings = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config", config_file=str(path), error=str(e))
        raise ValueError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(settings, dict):
        raise ValueError(f"Config file {path} does not hold a mapping")
    return settings


def get_config(use_global: bool = False) -> Config:
    """Local config with global fallback, or the global config alone."""
    return Config(use_global=use_global)


def resolve_storage_root(config: Config) -> tuple[Path, Path | None]:
    """Work out where records and backups live.

    Called once at startup; the result is handed to the record store.
    ONE_RING_ROOT wins over the storage.root setting, which wins over
    .one-ring/data under the current directory.

    Returns:
        (data root, backups directory or None for the store's default)
    """
    root = os.environ.get(ROOT_ENV_VAR) or config.get(STORAGE_ROOT_KEY)
    data_root = Path(root).expanduser() if root else Path.cwd() / CONFIG_DIRNAME / "data"

    backups = config.get(BACKUPS_KEY)
    backups_dir = Path(backups).expanduser() if backups else None

    logger.debug("Resolved storage root", root=str(data_root), backups=str(backups_dir) if backups_dir else None)
    return data_root, backups_dir
