"""Layout data models: the saved folder to shortcut mapping."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ROOT_FOLDER = "Root"
FOLDER_SEPARATOR = "\\"


def folder_parts(folder: str) -> Tuple[str, ...]:
    """Split a folder path into segments; `Root` and the empty string have none."""
    if not folder or folder == ROOT_FOLDER:
        return ()
    normalized = folder.replace("/", FOLDER_SEPARATOR)
    return tuple(part for part in normalized.split(FOLDER_SEPARATOR) if part)


def join_folder(parts: Tuple[str, ...] | list[str]) -> str:
    """Join segments into a folder path, returning `Root` for no segments."""
    return FOLDER_SEPARATOR.join(parts) if parts else ROOT_FOLDER


def normalize_folder(folder: str) -> str:
    return join_folder(folder_parts(folder))


def folder_key(folder: str) -> str:
    """Return the case-insensitive comparison key for a folder path."""
    return normalize_folder(folder).casefold()


def folder_path(root: Path, folder: str) -> Path:
    """Resolve a folder path against the tree root."""
    return root.joinpath(*folder_parts(folder))


def folder_ancestors(folder: str) -> list[str]:
    """Return every proper ancestor of `folder`, nearest first, ending with `Root`."""
    parts = folder_parts(folder)
    return [join_folder(parts[:index]) for index in range(len(parts) - 1, -1, -1)]


class ShortcutMetadata(BaseModel):
    """Information needed to recreate a shortcut.

    Attributes:
        target_path: Program or document the shortcut launches.
        arguments: Launch arguments.
        working_directory: Working directory for the launched program.
        icon_location: Icon reference, usually `path,index`.
        description: Free-text comment shown as the tooltip.
    """

    model_config = ConfigDict(extra="forbid")

    arguments: Optional[str] = None
    description: Optional[str] = None
    icon_location: Optional[str] = None
    target_path: Optional[str] = None
    working_directory: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_recreatable(self) -> bool:
        return bool(self.target_path)


class LayoutModel(BaseModel):
    """Ordered folder to shortcut mapping.

    Folder values may be written as a list of names when no metadata is
    recorded; they are expanded to empty `ShortcutMetadata` entries.
    """

    model_config = ConfigDict(extra="forbid")

    folders: Dict[str, Dict[str, ShortcutMetadata]] = Field(default_factory=dict)

    @field_validator("folders", mode="before")
    @classmethod
    def _expand_name_lists(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        expanded: dict[object, object] = {}
        for folder, items in value.items():
            if isinstance(items, list):
                items = {name: {} for name in items}
            key = normalize_folder(folder) if isinstance(folder, str) else folder
            if key in expanded:
                raise ValueError(f"Folder '{folder}' is listed more than once as '{key}'.")
            expanded[key] = items
        return expanded

    @model_validator(mode="after")
    def _check_unique_folders(self) -> "LayoutModel":
        seen: dict[str, str] = {}
        for folder in self.folders:
            key = folder_key(folder)
            if key in seen:
                raise ValueError(f"Folders '{seen[key]}' and '{folder}' differ only by case.")
            seen[key] = folder
        return self

    def iter_items(self) -> Iterator[tuple[str, str, ShortcutMetadata]]:
        """Yield `(folder, name, metadata)` in layout order."""
        for folder, items in self.folders.items():
            for name, metadata in items.items():
                yield folder, name, metadata

    def item_count(self) -> int:
        return sum(len(items) for items in self.folders.values())

    def add(self, folder: str, name: str, metadata: ShortcutMetadata | None = None) -> None:
        folder = normalize_folder(folder)
        self.folders.setdefault(folder, {})[name] = metadata or ShortcutMetadata()

    def sorted(self) -> "LayoutModel":
        """Return a copy with folders and items in alphabetical order."""
        return LayoutModel(
            folders={
                folder: {name: self.folders[folder][name] for name in sorted(self.folders[folder])}
                for folder in sorted(self.folders)
            }
        )


__all__ = [
    "ROOT_FOLDER",
    "FOLDER_SEPARATOR",
    "folder_parts",
    "join_folder",
    "normalize_folder",
    "folder_key",
    "folder_path",
    "folder_ancestors",
    "ShortcutMetadata",
    "LayoutModel",
]
