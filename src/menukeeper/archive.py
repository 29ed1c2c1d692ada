"""Compressed snapshots of the shortcut tree."""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_EXTENSIONS = {
    "zip": ".zip",
    "tar": ".tar",
    "gztar": ".tar.gz",
    "bztar": ".tar.bz2",
    "xztar": ".tar.xz",
}


def create_snapshot_archive(
    root: Path,
    archive_dir: Path,
    *,
    archive_format: str = "zip",
    timestamp: datetime | None = None,
) -> Path:
    """Archive `root` into `archive_dir` as `<root-name>-YYYYmmdd-HHMMSS`.

    Args:
        root: Tree to archive.
        archive_dir: Directory receiving the archive.
        archive_format: Any format understood by `shutil.make_archive`.
        timestamp: Time used in the archive name; defaults to now.

    Returns:
        Path: Location of the written archive.
    """
    if archive_format not in _EXTENSIONS:
        raise ValueError(f"Unsupported archive format '{archive_format}'.")
    archive_dir.mkdir(parents=True, exist_ok=True)
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d-%H%M%S")
    base_name = archive_dir / f"{_archive_stem(root)}-{stamp}"
    written = shutil.make_archive(
        str(base_name), archive_format, root_dir=str(root.parent), base_dir=root.name
    )
    LOGGER.info("Archived %s to %s", root, written)
    return Path(written)


def list_archives(root: Path, archive_dir: Path) -> list[Path]:
    """Return archives of `root` in `archive_dir`, oldest first."""
    if not archive_dir.is_dir():
        return []
    extensions = "|".join(re.escape(ext) for ext in _EXTENSIONS.values())
    pattern = re.compile(rf"{re.escape(_archive_stem(root))}-\d{{8}}-\d{{6}}(?:{extensions})")
    found = [
        path
        for path in archive_dir.iterdir()
        if path.is_file() and pattern.fullmatch(path.name)
    ]
    # Names embed a sortable timestamp.
    return sorted(found, key=lambda path: path.name)


def prune_archives(root: Path, archive_dir: Path, keep: int) -> list[Path]:
    """Delete the oldest archives of `root` beyond `keep`; 0 keeps everything."""
    if keep <= 0:
        return []
    archives = list_archives(root, archive_dir)
    removed = archives[: max(0, len(archives) - keep)]
    for path in removed:
        path.unlink()
        LOGGER.info("Removed old archive %s", path)
    return removed


def _archive_stem(root: Path) -> str:
    return root.name.replace(" ", "-") or "tree"


__all__ = ["create_snapshot_archive", "list_archives", "prune_archives"]
