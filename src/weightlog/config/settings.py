"""Application settings and configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

CONFIG_ENV_VAR = "WEIGHTLOG_CONFIG"


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".weightlog"


def _default_config_path() -> Path:
    """Return the config file path, honouring WEIGHTLOG_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return _default_config_dir() / "config.yaml"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "weightlog.db"


def _default_backup_dir() -> Path:
    return _default_config_dir() / "backups"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class TrackingConfig:
    """Trend and milestone configuration."""

    sma_windows: list[int] = field(default_factory=lambda: [7, 30])
    seed_milestones: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class BackupConfig:
    """Backup configuration."""

    directory: Path = field(default_factory=_default_backup_dir)


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses $WEIGHTLOG_CONFIG
                or ~/.weightlog/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse database config
        if "database" in data:
            db_data = data["database"] or {}
            if db_data.get("path"):
                settings.database.path = Path(db_data["path"]).expanduser()

        # Parse tracking config
        if "tracking" in data:
            tracking_data = data["tracking"] or {}
            if "sma_windows" in tracking_data:
                windows = [int(w) for w in tracking_data["sma_windows"]]
                if any(w < 1 for w in windows):
                    raise ValueError(f"sma_windows must be positive integers, got {windows}")
                settings.tracking.sma_windows = windows
            if "seed_milestones" in tracking_data:
                settings.tracking.seed_milestones = bool(tracking_data["seed_milestones"])

        # Parse logging config
        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        # Parse backup config
        if "backup" in data:
            backup_data = data["backup"] or {}
            if backup_data.get("directory"):
                settings.backup.directory = Path(backup_data["directory"]).expanduser()

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses the default location
        """
        if config_path is None:
            config_path = _default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict:
        """Settings as plain YAML/JSON-friendly values."""
        return {
            "database": {
                "path": str(self.database.path),
            },
            "tracking": {
                "sma_windows": self.tracking.sma_windows,
                "seed_milestones": self.tracking.seed_milestones,
            },
            "logging": {
                "level": self.logging.level,
            },
            "backup": {
                "directory": str(self.backup.directory),
            },
        }


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
