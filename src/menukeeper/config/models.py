"""Configuration models describing menukeeper settings."""

from __future__ import annotations

import os
import sys
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def _default_start_menu() -> Optional[str]:
    if sys.platform != "win32":
        return None
    appdata = os.environ.get("APPDATA")
    if not appdata:
        return None
    return os.path.join(appdata, "Microsoft", "Windows", "Start Menu", "Programs")


DEFAULT_PROTECTED_FOLDERS = [
    "Accessibility",
    "Accessories",
    "Administrative Tools",
    "Maintenance",
    "Startup",
    "System Tools",
    "Windows PowerShell",
]

DEFAULT_QUALIFIERS = ["32-bit", "64-bit", "x64", "x86", "ARM64", "Beta", "Preview"]


class MenuKeeperBaseModel(BaseModel):
    """Shared configuration for menukeeper Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class PathSettings(MenuKeeperBaseModel):
    """Filesystem locations used by the CLI.

    Attributes:
        root: Tree that holds the shortcuts. Defaults to the per-user Start Menu on Windows.
        layout_file: JSON file storing the saved layout.
        archive_dir: Directory receiving snapshot archives.
        log_file: Append-only action log.
    """

    root: Optional[str] = Field(default_factory=_default_start_menu)
    layout_file: str = "~/.menukeeper/layout.json"
    archive_dir: str = "~/.menukeeper/archives"
    log_file: str = "~/.menukeeper/menukeeper.log"


class OrganizationOptions(MenuKeeperBaseModel):
    """Settings that govern layout enforcement.

    Attributes:
        quarantine_folder: Folder (relative to the root) receiving unknown shortcuts.
        protected_folders: Folders that are never removed, even when empty.
        ignored_files: File names that do not count as folder content.
    """

    quarantine_folder: str = "Unsorted"
    protected_folders: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_FOLDERS)
    )
    ignored_files: List[str] = Field(default_factory=lambda: ["desktop.ini"])


class ScanningOptions(MenuKeeperBaseModel):
    """Options governing tree traversal.

    Attributes:
        item_suffix: File suffix identifying shortcut items.
        workers: Size of the metadata read worker pool.
        backend: Shortcut backend to use for metadata reads and recreation.
    """

    item_suffix: str = ".lnk"
    workers: int = 5
    backend: Literal["auto", "windows", "json"] = "auto"


class NormalizationOptions(MenuKeeperBaseModel):
    """Name normalization settings.

    Attributes:
        qualifiers: Parenthesized qualifiers stripped from display names.
    """

    qualifiers: List[str] = Field(default_factory=lambda: list(DEFAULT_QUALIFIERS))


class ArchiveSettings(MenuKeeperBaseModel):
    """Snapshot archive settings.

    Attributes:
        enabled: Whether `save` writes an archive of the tree.
        format: Archive format understood by `shutil.make_archive`.
        keep: Number of archives to retain (0 keeps all).
    """

    enabled: bool = True
    format: Literal["zip", "tar", "gztar", "bztar", "xztar"] = "zip"
    keep: int = 10


class LoggingSettings(MenuKeeperBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(MenuKeeperBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class MenuKeeperConfig(MenuKeeperBaseModel):
    """Top-level configuration struct for menukeeper.

    Attributes:
        paths: Filesystem locations.
        organization: Enforcement settings.
        scanning: Traversal settings.
        normalization: Name normalization settings.
        archive: Snapshot archive settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    paths: PathSettings = Field(default_factory=PathSettings)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    scanning: ScanningOptions = Field(default_factory=ScanningOptions)
    normalization: NormalizationOptions = Field(default_factory=NormalizationOptions)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_PROTECTED_FOLDERS",
    "DEFAULT_QUALIFIERS",
    "MenuKeeperBaseModel",
    "PathSettings",
    "OrganizationOptions",
    "ScanningOptions",
    "NormalizationOptions",
    "ArchiveSettings",
    "LoggingSettings",
    "CLIOptions",
    "MenuKeeperConfig",
]
