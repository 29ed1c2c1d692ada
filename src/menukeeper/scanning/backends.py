"""Shortcut metadata backends.

A backend knows how to read the recreation metadata stored in a shortcut file
and how to write a new shortcut from that metadata. Windows `.lnk` files are
handled through the `WScript.Shell` COM object; elsewhere a JSON body stands
in for the binary shortcut format.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from menukeeper.layout.models import ShortcutMetadata

LOGGER = logging.getLogger(__name__)

# ShortcutMetadata field -> WScript.Shell shortcut property
_COM_PROPERTIES = {
    "target_path": "TargetPath",
    "arguments": "Arguments",
    "working_directory": "WorkingDirectory",
    "icon_location": "IconLocation",
    "description": "Description",
}


class MetadataReadError(Exception):
    """Raised when shortcut metadata cannot be read."""


class ShortcutWriteError(Exception):
    """Raised when a shortcut cannot be created."""


class ShortcutBackend(Protocol):
    """Capability interface for reading and creating shortcuts."""

    def read(self, path: Path) -> ShortcutMetadata:
        """Return metadata stored in the shortcut at `path`."""
        ...

    def create(self, path: Path, metadata: ShortcutMetadata) -> None:
        """Create a shortcut at `path` from `metadata`."""
        ...


class WindowsShortcutBackend:
    """Read and write `.lnk` files through pywin32."""

    def __init__(self) -> None:
        try:
            import pywintypes
            import win32com.client  # pywin32
        except ImportError as exc:
            raise RuntimeError("pywin32 is required for Windows shortcut support.") from exc
        self._client = win32com.client
        self._errors = (pywintypes.com_error, OSError)

    def _shell(self):
        # COM objects are apartment bound; each worker thread gets its own.
        import pythoncom

        pythoncom.CoInitialize()
        return self._client.Dispatch("WScript.Shell")

    def read(self, path: Path) -> ShortcutMetadata:
        try:
            shortcut = self._shell().CreateShortCut(str(path))
            values = {
                field: getattr(shortcut, prop, "") or "" for field, prop in _COM_PROPERTIES.items()
            }
        except self._errors as exc:
            raise MetadataReadError(f"{path}: {exc}") from exc
        # Windows reports ",0" for shortcuts without a custom icon.
        if values["icon_location"] in {",0", ""}:
            values["icon_location"] = ""
        return ShortcutMetadata.model_validate(values)

    def create(self, path: Path, metadata: ShortcutMetadata) -> None:
        try:
            shortcut = self._shell().CreateShortCut(str(path))
            for field, prop in _COM_PROPERTIES.items():
                value = getattr(metadata, field)
                if value:
                    setattr(shortcut, prop, value)
            shortcut.Save()
        except self._errors as exc:
            raise ShortcutWriteError(f"{path}: {exc}") from exc


class JsonShortcutBackend:
    """Portable backend that stores metadata as a JSON body inside the item file.

    An empty file reads as a shortcut without metadata.
    """

    def read(self, path: Path) -> ShortcutMetadata:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MetadataReadError(f"{path}: {exc}") from exc
        if not text.strip():
            return ShortcutMetadata()
        try:
            return ShortcutMetadata.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise MetadataReadError(f"{path}: unreadable shortcut data ({exc})") from exc

    def create(self, path: Path, metadata: ShortcutMetadata) -> None:
        payload = json.dumps(metadata.model_dump(mode="json", exclude_none=True), sort_keys=True)
        try:
            with path.open("x", encoding="utf-8") as handle:
                handle.write(payload)
        except OSError as exc:
            raise ShortcutWriteError(f"{path}: {exc}") from exc


def default_backend(name: str = "auto") -> ShortcutBackend:
    """Return the backend for `name` (`auto`, `windows` or `json`)."""
    if name == "windows" or (name == "auto" and sys.platform == "win32"):
        return WindowsShortcutBackend()
    if name not in {"auto", "json"}:
        raise ValueError(f"Unknown shortcut backend '{name}'.")
    LOGGER.debug("Using JSON shortcut backend.")
    return JsonShortcutBackend()


__all__ = [
    "MetadataReadError",
    "ShortcutWriteError",
    "ShortcutBackend",
    "WindowsShortcutBackend",
    "JsonShortcutBackend",
    "default_backend",
]
