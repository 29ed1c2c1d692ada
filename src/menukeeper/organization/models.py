"""Reconciliation plan data models."""

from __future__ import annotations

from typing import Annotated, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from menukeeper.layout.models import ShortcutMetadata


class MoveAction(BaseModel):
    """Move a shortcut into the folder the layout expects.

    Attributes:
        name: Shortcut file name.
        source_folder: Folder currently holding the shortcut.
        target_folder: Folder the layout expects.
    """

    kind: Literal["move"] = "move"
    name: str
    source_folder: str
    target_folder: str


class RecreateAction(BaseModel):
    """Create a missing shortcut from saved metadata."""

    kind: Literal["recreate"] = "recreate"
    name: str
    folder: str
    metadata: ShortcutMetadata


class QuarantineAction(BaseModel):
    """Move an unknown shortcut into the quarantine folder.

    Attributes:
        name: Shortcut file name.
        source_folder: Folder currently holding the shortcut.
        target_folder: Quarantine folder.
        rename_to: New file name when the original name is already taken.
    """

    kind: Literal["quarantine"] = "quarantine"
    name: str
    source_folder: str
    target_folder: str
    rename_to: Optional[str] = None

    @property
    def destination_name(self) -> str:
        return self.rename_to or self.name


class DeleteDuplicateAction(BaseModel):
    """Delete a redundant copy of a shortcut."""

    kind: Literal["delete_duplicate"] = "delete_duplicate"
    name: str
    folder: str


class DeleteEmptyFolderAction(BaseModel):
    """Delete a folder that ends up without shortcuts."""

    kind: Literal["delete_empty_folder"] = "delete_empty_folder"
    folder: str


PlannedAction = Annotated[
    Union[
        MoveAction,
        RecreateAction,
        QuarantineAction,
        DeleteDuplicateAction,
        DeleteEmptyFolderAction,
    ],
    Field(discriminator="kind"),
]


class ActionPlan(BaseModel):
    """Actions grouped by execution phase."""

    moves: List[MoveAction] = Field(default_factory=list)
    recreations: List[RecreateAction] = Field(default_factory=list)
    quarantines: List[QuarantineAction] = Field(default_factory=list)
    duplicate_deletes: List[DeleteDuplicateAction] = Field(default_factory=list)
    empty_folder_deletes: List[DeleteEmptyFolderAction] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    def actions(self) -> Iterator[PlannedAction]:
        """Yield every action in execution phase order."""
        yield from self.moves
        yield from self.recreations
        yield from self.quarantines
        yield from self.duplicate_deletes
        yield from self.empty_folder_deletes

    @property
    def total(self) -> int:
        return (
            len(self.moves)
            + len(self.recreations)
            + len(self.quarantines)
            + len(self.duplicate_deletes)
            + len(self.empty_folder_deletes)
        )

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def counts(self) -> dict[str, int]:
        return {
            "moves": len(self.moves),
            "recreations": len(self.recreations),
            "quarantines": len(self.quarantines),
            "duplicates": len(self.duplicate_deletes),
            "empty_folders": len(self.empty_folder_deletes),
        }


class ActionResult(BaseModel):
    """Outcome of a single executed action."""

    action: PlannedAction
    success: bool
    error: Optional[str] = None


class ExecutionReport(BaseModel):
    """Aggregated executor outcome."""

    results: List[ActionResult] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def error_count(self) -> int:
        return sum(1 for result in self.results if not result.success)

    def failures(self) -> list[ActionResult]:
        return [result for result in self.results if not result.success]


__all__ = [
    "MoveAction",
    "RecreateAction",
    "QuarantineAction",
    "DeleteDuplicateAction",
    "DeleteEmptyFolderAction",
    "PlannedAction",
    "ActionPlan",
    "ActionResult",
    "ExecutionReport",
]
