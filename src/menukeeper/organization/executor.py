"""Executor for reconciliation plans."""

from __future__ import annotations

import errno
import logging
from pathlib import Path
from typing import Iterable

from menukeeper.layout.models import folder_key, folder_path
from menukeeper.scanning.backends import ShortcutBackend, ShortcutWriteError

from .models import (
    ActionPlan,
    ActionResult,
    DeleteDuplicateAction,
    DeleteEmptyFolderAction,
    ExecutionReport,
    MoveAction,
    PlannedAction,
    QuarantineAction,
    RecreateAction,
)

LOGGER = logging.getLogger(__name__)


class PlanExecutor:
    """Apply action plans to a shortcut tree.

    Actions run phase by phase (moves, recreations, quarantines, duplicate
    deletions, empty-folder deletions). A failing action is logged and counted
    and the batch carries on; nothing is rolled back.
    """

    def __init__(
        self,
        root: Path,
        backend: ShortcutBackend,
        *,
        ignored_files: Iterable[str] = ("desktop.ini",),
    ) -> None:
        self.root = root
        self.backend = backend
        self._ignored = {name.casefold() for name in ignored_files}
        self._created_folders: set[str] = set()

    def execute(self, plan: ActionPlan) -> ExecutionReport:
        """Apply every action in `plan`.

        Args:
            plan: Plan produced by the reconciler.

        Returns:
            ExecutionReport: Per-action results with success and error tallies.
        """
        report = ExecutionReport()
        for action in plan.actions():
            try:
                self._apply(action)
            except (OSError, ShortcutWriteError) as exc:
                LOGGER.error("FAILED %s: %s", self.describe(action), exc)
                report.results.append(ActionResult(action=action, success=False, error=str(exc)))
            else:
                LOGGER.info("%s", self.describe(action))
                report.results.append(ActionResult(action=action, success=True))
        LOGGER.info(
            "Execution finished: %d succeeded, %d failed.",
            report.success_count,
            report.error_count,
        )
        return report

    @staticmethod
    def describe(action: PlannedAction) -> str:
        """Return a one-line description of an action for logs and previews."""
        if isinstance(action, MoveAction):
            return f"MOVE {action.source_folder}\\{action.name} -> {action.target_folder}"
        if isinstance(action, RecreateAction):
            target = action.metadata.target_path
            return f"RECREATE {action.folder}\\{action.name} (target {target})"
        if isinstance(action, QuarantineAction):
            return (
                f"QUARANTINE {action.source_folder}\\{action.name} -> "
                f"{action.target_folder}\\{action.destination_name}"
            )
        if isinstance(action, DeleteDuplicateAction):
            return f"DELETE DUPLICATE {action.folder}\\{action.name}"
        return f"DELETE EMPTY FOLDER {action.folder}"

    def _apply(self, action: PlannedAction) -> None:
        if isinstance(action, MoveAction):
            self._move(action.source_folder, action.name, action.target_folder, action.name)
        elif isinstance(action, RecreateAction):
            destination = self._ensure_folder(action.folder) / action.name
            if destination.exists():
                raise FileExistsError(f"Destination already exists: {destination}")
            self.backend.create(destination, action.metadata)
        elif isinstance(action, QuarantineAction):
            self._move(
                action.source_folder, action.name, action.target_folder, action.destination_name
            )
        elif isinstance(action, DeleteDuplicateAction):
            folder_path(self.root, action.folder).joinpath(action.name).unlink()
        elif isinstance(action, DeleteEmptyFolderAction):
            self._remove_folder(action.folder)

    def _move(self, source_folder: str, name: str, target_folder: str, new_name: str) -> None:
        source = folder_path(self.root, source_folder) / name
        if not source.exists():
            raise FileNotFoundError(f"Source path is missing: {source}")
        destination = self._ensure_folder(target_folder) / new_name
        if destination.exists():
            raise FileExistsError(f"Destination already exists: {destination}")
        source.rename(destination)

    def _ensure_folder(self, folder: str) -> Path:
        path = folder_path(self.root, folder)
        key = folder_key(folder)
        if key not in self._created_folders:
            path.mkdir(parents=True, exist_ok=True)
            self._created_folders.add(key)
        return path

    def _remove_folder(self, folder: str) -> None:
        path = folder_path(self.root, folder)
        children = list(path.iterdir())
        remaining = [
            child
            for child in children
            if not (child.is_file() and child.name.casefold() in self._ignored)
        ]
        if remaining:
            raise OSError(errno.ENOTEMPTY, "Folder is not empty", str(path))
        for child in children:
            child.unlink()
        path.rmdir()
        self._created_folders.discard(folder_key(folder))


__all__ = ["PlanExecutor"]
