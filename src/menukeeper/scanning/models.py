"""Models describing the observed state of a shortcut tree."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

from pydantic import BaseModel, Field


class ObservedShortcut(BaseModel):
    """A shortcut found in the live tree.

    Attributes:
        name: File name including the suffix.
        folder: Folder path relative to the root (`Root` for the top level).
        path: Absolute filesystem path.
    """

    name: str
    folder: str
    path: Path


class ObservedFolder(BaseModel):
    """A directory found in the live tree.

    Attributes:
        folder: Folder path relative to the root.
        foreign_entries: Non-shortcut files that keep the folder from being empty.
    """

    folder: str
    foreign_entries: Tuple[str, ...] = ()


class ObservedSnapshot(BaseModel):
    """Shortcuts and folders in traversal order."""

    items: List[ObservedShortcut] = Field(default_factory=list)
    folders: List[ObservedFolder] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)


__all__ = ["ObservedShortcut", "ObservedFolder", "ObservedSnapshot"]
