"""Layout persistence helpers."""

from __future__ import annotations

import difflib
import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import LayoutError, LayoutParseError, MissingLayoutError
from .models import (
    ROOT_FOLDER,
    LayoutModel,
    ShortcutMetadata,
    folder_key,
    folder_parts,
    folder_path,
    join_folder,
    normalize_folder,
)


class LayoutStore:
    """Read and write the saved layout file."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON layout file.
        """
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LayoutModel:
        """Load the saved layout.

        Returns:
            LayoutModel: Validated layout.

        Raises:
            MissingLayoutError: If the layout file does not exist.
            LayoutParseError: If the file is not valid JSON or has the wrong shape.
        """
        if not self._path.exists():
            raise MissingLayoutError(f"No saved layout found at {self._path}")
        return self.parse(self._path.read_text(encoding="utf-8"))

    def parse(self, text: str) -> LayoutModel:
        """Parse serialized layout text.

        Raises:
            LayoutParseError: If the text is not valid JSON or has the wrong shape.
        """
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LayoutParseError(f"Invalid layout data: {exc}") from exc

        if not isinstance(raw, dict):
            raise LayoutParseError("Layout file must contain a mapping of folders to shortcuts.")

        try:
            return LayoutModel.model_validate({"folders": raw})
        except ValidationError as exc:
            raise LayoutParseError(f"Invalid layout structure: {exc}") from exc

    def render(self, layout: LayoutModel) -> str:
        """Serialize the layout deterministically.

        Folders, shortcut names and metadata keys are sorted and unset metadata
        fields are omitted, so an unchanged tree renders to identical text.
        """
        payload: dict[str, Any] = {
            folder: {
                name: metadata.model_dump(mode="json", exclude_none=True)
                for name, metadata in items.items()
            }
            for folder, items in layout.folders.items()
        }
        return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    def save(self, layout: LayoutModel) -> str | None:
        """Write the layout and return the previously stored text, if any."""
        previous = self.read_text()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self.render(layout), encoding="utf-8")
        return previous

    def read_text(self) -> str | None:
        if not self._path.exists():
            return None
        return self._path.read_text(encoding="utf-8")

    @staticmethod
    def diff(before: str | None, after: str) -> list[str]:
        """Return unified diff lines between two serialized layouts."""
        return list(
            difflib.unified_diff(
                (before or "").splitlines(),
                after.splitlines(),
                fromfile="layout.json (saved)",
                tofile="layout.json (current)",
                lineterm="",
            )
        )


__all__ = [
    "LayoutStore",
    "LayoutModel",
    "ShortcutMetadata",
    "LayoutError",
    "LayoutParseError",
    "MissingLayoutError",
    "ROOT_FOLDER",
    "folder_key",
    "folder_parts",
    "folder_path",
    "join_folder",
    "normalize_folder",
]
