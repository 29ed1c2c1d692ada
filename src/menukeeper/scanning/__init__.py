"""Shortcut tree scanning."""

from .backends import (
    JsonShortcutBackend,
    MetadataReadError,
    ShortcutBackend,
    ShortcutWriteError,
    WindowsShortcutBackend,
    default_backend,
)
from .models import ObservedFolder, ObservedShortcut, ObservedSnapshot
from .scanner import ShortcutScanner

__all__ = [
    "JsonShortcutBackend",
    "MetadataReadError",
    "ShortcutBackend",
    "ShortcutWriteError",
    "WindowsShortcutBackend",
    "default_backend",
    "ObservedFolder",
    "ObservedShortcut",
    "ObservedSnapshot",
    "ShortcutScanner",
]
