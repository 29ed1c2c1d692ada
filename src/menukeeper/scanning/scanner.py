"""Shortcut tree discovery."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator

from menukeeper.layout.models import LayoutModel, ShortcutMetadata, join_folder

from .backends import MetadataReadError, ShortcutBackend
from .models import ObservedFolder, ObservedShortcut, ObservedSnapshot

LOGGER = logging.getLogger(__name__)


class ShortcutScanner:
    """Walk a shortcut tree and report its folders, shortcuts and metadata.

    Directory entries are visited in sorted order so the traversal order, and
    therefore every first-seen decision made downstream, is stable for a given
    tree.
    """

    def __init__(
        self,
        backend: ShortcutBackend,
        *,
        suffix: str = ".lnk",
        workers: int = 5,
        ignored_files: Iterable[str] = ("desktop.ini",),
    ) -> None:
        self.backend = backend
        self.suffix = suffix
        self.workers = max(1, workers)
        self.ignored_files = {name.casefold() for name in ignored_files}

    def scan_layout(self, root: Path) -> LayoutModel:
        """Capture the tree as a layout, including recreation metadata.

        Shortcuts whose metadata cannot be read are still recorded, with empty
        metadata.
        """
        layout = LayoutModel()
        entries = [(folder, path) for folder, path in self._walk(root, folders=None)]
        for (folder, path), result in zip(entries, self._read_all(path for _, path in entries)):
            if isinstance(result, MetadataReadError):
                LOGGER.warning("Metadata unavailable for %s; recording without it: %s", path, result)
                result = ShortcutMetadata()
            layout.add(folder, path.name, result)
        return layout.sorted()

    def scan_actual(self, root: Path) -> ObservedSnapshot:
        """Capture the current tree for reconciliation.

        Shortcuts that cannot be read are skipped with a warning and count as
        foreign entries of their folder, so the folder is never treated as empty.
        """
        snapshot = ObservedSnapshot()
        entries = [(folder, path) for folder, path in self._walk(root, folders=snapshot.folders)]
        unreadable: dict[str, list[str]] = {}
        for (folder, path), result in zip(entries, self._read_all(path for _, path in entries)):
            if isinstance(result, MetadataReadError):
                LOGGER.warning("Skipping unreadable shortcut %s: %s", path, result)
                snapshot.skipped.append(str(path))
                unreadable.setdefault(folder, []).append(path.name)
                continue
            snapshot.items.append(ObservedShortcut(name=path.name, folder=folder, path=path))

        for index, entry in enumerate(snapshot.folders):
            names = unreadable.get(entry.folder)
            if names:
                snapshot.folders[index] = entry.model_copy(
                    update={"foreign_entries": entry.foreign_entries + tuple(names)}
                )
        return snapshot

    def _walk(
        self, root: Path, *, folders: list[ObservedFolder] | None
    ) -> Iterator[tuple[str, Path]]:
        root = root.expanduser()
        if not root.is_dir():
            raise NotADirectoryError(f"Shortcut root is not a directory: {root}")

        def _on_error(exc: OSError) -> None:
            LOGGER.warning("Unable to read folder %s: %s", exc.filename, exc.strerror or exc)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames.sort(key=str.casefold)
            current = Path(dirpath)
            relative = current.relative_to(root)
            folder = join_folder(relative.parts)

            foreign: list[str] = []
            for filename in sorted(filenames, key=str.casefold):
                if filename.lower().endswith(self.suffix.lower()):
                    yield folder, current / filename
                elif filename.casefold() not in self.ignored_files:
                    foreign.append(filename)

            if folders is not None:
                folders.append(ObservedFolder(folder=folder, foreign_entries=tuple(foreign)))

    def _read_all(
        self, paths: Iterable[Path]
    ) -> list[ShortcutMetadata | MetadataReadError]:
        """Read metadata for every path on a bounded worker pool, preserving order."""
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(self._read_one, paths))

    def _read_one(self, path: Path) -> ShortcutMetadata | MetadataReadError:
        try:
            return self.backend.read(path)
        except MetadataReadError as exc:
            return exc


__all__ = ["ShortcutScanner"]
