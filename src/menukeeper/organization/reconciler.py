"""Reconcile a saved layout against the observed shortcut tree."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from menukeeper.layout.models import (
    ROOT_FOLDER,
    LayoutModel,
    ShortcutMetadata,
    folder_ancestors,
    folder_key,
    folder_parts,
    normalize_folder,
)
from menukeeper.naming import NameNormalizer
from menukeeper.scanning.models import ObservedFolder, ObservedShortcut

from .models import (
    ActionPlan,
    DeleteDuplicateAction,
    DeleteEmptyFolderAction,
    MoveAction,
    QuarantineAction,
    RecreateAction,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _Expectation:
    name: str
    folder: str
    metadata: ShortcutMetadata


@dataclass(slots=True)
class _Lookup:
    variants: dict[str, list[_Expectation]]
    expected: dict[str, _Expectation]


class Reconciler:
    """Compute the actions that bring an observed tree in line with a layout.

    Matching works on canonical keys produced by the normalizer. When several
    layout entries share a canonical key (for example the 32-bit and 64-bit
    builds of one tool), each of them is matched by its exact full name
    instead.

    The reconciler performs no I/O. First-seen decisions follow the order of
    `observed`, which is the scanner's traversal order.
    """

    def __init__(
        self,
        normalizer: NameNormalizer,
        *,
        quarantine_folder: str = "Unsorted",
        protected_folders: Iterable[str] = (),
    ) -> None:
        self.normalizer = normalizer
        self.quarantine_folder = normalize_folder(quarantine_folder)
        self._protected = {folder_key(folder) for folder in protected_folders}

    def reconcile(
        self,
        layout: LayoutModel,
        observed: Sequence[ObservedShortcut],
        folders: Sequence[ObservedFolder] = (),
    ) -> ActionPlan:
        """Classify every observed shortcut and plan the resulting actions.

        Args:
            layout: Saved layout describing where shortcuts belong.
            observed: Shortcuts found in the live tree, in traversal order.
            folders: Folders found in the live tree, used for empty-folder cleanup.

        Returns:
            ActionPlan: Moves, recreations, quarantines, duplicate deletions and
                empty-folder deletions.
        """
        plan = ActionPlan()
        lookup = self._build_lookup(layout, plan)

        survivors: dict[str, ObservedShortcut] = {}
        losers: list[ObservedShortcut] = []
        unknown: list[ObservedShortcut] = []

        for item in observed:
            match = self._match_key(item.name, lookup)
            if match is None:
                unknown.append(item)
                continue
            current = survivors.get(match)
            if current is None:
                survivors[match] = item
                continue
            loser = self._resolve_duplicate(current, item, lookup.expected[match].folder)
            if loser is current:
                survivors[match] = item
            losers.append(loser)
            plan.duplicate_deletes.append(DeleteDuplicateAction(name=loser.name, folder=loser.folder))
            LOGGER.info(
                "Duplicate of %s found at %s\\%s; keeping %s\\%s.",
                match,
                loser.folder,
                loser.name,
                survivors[match].folder,
                survivors[match].name,
            )

        final_folders: list[str] = []
        settled: list[ObservedShortcut] = []

        for match, item in survivors.items():
            target = lookup.expected[match].folder
            if _same_folder(item.folder, target):
                final_folders.append(item.folder)
                settled.append(item)
                continue
            plan.moves.append(
                MoveAction(name=item.name, source_folder=item.folder, target_folder=target)
            )
            final_folders.append(target)

        for key, expectation in lookup.expected.items():
            if key in survivors:
                continue
            if expectation.metadata.is_recreatable:
                plan.recreations.append(
                    RecreateAction(
                        name=expectation.name,
                        folder=expectation.folder,
                        metadata=expectation.metadata,
                    )
                )
                final_folders.append(expectation.folder)
            else:
                LOGGER.info(
                    "%s\\%s is missing and has no saved target; not recreating.",
                    expectation.folder,
                    expectation.name,
                )
                plan.notes.append(
                    f"Missing shortcut {expectation.folder}\\{expectation.name} cannot be "
                    "recreated without a saved target."
                )

        self._plan_quarantine(plan, unknown, losers + settled, final_folders)
        plan.empty_folder_deletes.extend(
            DeleteEmptyFolderAction(folder=folder)
            for folder in self._empty_folders(layout, observed, folders, final_folders)
        )
        return plan

    # ------------------------------------------------------------------ #
    # Matching                                                           #
    # ------------------------------------------------------------------ #

    def _build_lookup(self, layout: LayoutModel, plan: ActionPlan) -> _Lookup:
        variants: dict[str, list[_Expectation]] = {}
        for folder, name, metadata in layout.iter_items():
            canonical = self.normalizer.normalize(name).casefold()
            variants.setdefault(canonical, []).append(_Expectation(name, folder, metadata))

        expected: dict[str, _Expectation] = {}
        for canonical, group in variants.items():
            for expectation in group:
                key = expectation.name.casefold() if len(group) >= 2 else canonical
                existing = expected.get(key)
                if existing is not None:
                    LOGGER.info(
                        "%s is listed in both %s and %s; using %s.",
                        expectation.name,
                        existing.folder,
                        expectation.folder,
                        existing.folder,
                    )
                    plan.notes.append(
                        f"{expectation.name} appears in '{existing.folder}' and "
                        f"'{expectation.folder}'; the first folder wins."
                    )
                    continue
                expected[key] = expectation
        return _Lookup(variants=variants, expected=expected)

    def _match_key(self, name: str, lookup: _Lookup) -> Optional[str]:
        # Shortcut names compare case-insensitively, like folder paths.
        folded = name.casefold()
        canonical = self.normalizer.normalize(name).casefold()
        group = lookup.variants.get(canonical)
        if group is not None and len(group) >= 2:
            return folded if folded in lookup.expected else None
        if canonical in lookup.expected:
            return canonical
        if folded in lookup.expected:
            return folded
        return None

    def _resolve_duplicate(
        self, first: ObservedShortcut, second: ObservedShortcut, target: str
    ) -> ObservedShortcut:
        """Return the copy to delete; the first-seen copy wins unless only the second is placed."""
        if _same_folder(second.folder, target) and not _same_folder(first.folder, target):
            return first
        return second

    # ------------------------------------------------------------------ #
    # Quarantine                                                         #
    # ------------------------------------------------------------------ #

    def _plan_quarantine(
        self,
        plan: ActionPlan,
        unknown: list[ObservedShortcut],
        resident: list[ObservedShortcut],
        final_folders: list[str],
    ) -> None:
        # Names held in the quarantine folder when the quarantine phase runs:
        # shortcuts that stay or end up there, unknowns already there and
        # duplicates that are only deleted afterwards.
        occupied: set[str] = set()
        for item in resident:
            if _same_folder(item.folder, self.quarantine_folder):
                occupied.add(item.name.casefold())
        for action in plan.moves:
            if _same_folder(action.target_folder, self.quarantine_folder):
                occupied.add(action.name.casefold())
        for action in plan.recreations:
            if _same_folder(action.folder, self.quarantine_folder):
                occupied.add(action.name.casefold())

        incoming: list[ObservedShortcut] = []
        for item in unknown:
            if _same_folder(item.folder, self.quarantine_folder):
                occupied.add(item.name.casefold())
                final_folders.append(item.folder)
            else:
                incoming.append(item)

        for item in incoming:
            destination = _free_name(item.name, occupied)
            occupied.add(destination.casefold())
            plan.quarantines.append(
                QuarantineAction(
                    name=item.name,
                    source_folder=item.folder,
                    target_folder=self.quarantine_folder,
                    rename_to=destination if destination != item.name else None,
                )
            )
            final_folders.append(self.quarantine_folder)

    # ------------------------------------------------------------------ #
    # Empty folders                                                      #
    # ------------------------------------------------------------------ #

    def _empty_folders(
        self,
        layout: LayoutModel,
        observed: Sequence[ObservedShortcut],
        folders: Sequence[ObservedFolder],
        final_folders: list[str],
    ) -> list[str]:
        keep: set[str] = set()

        def _keep(folder: str) -> None:
            keep.add(folder_key(folder))
            keep.update(folder_key(ancestor) for ancestor in folder_ancestors(folder))

        _keep(ROOT_FOLDER)
        _keep(self.quarantine_folder)
        for folder in final_folders:
            _keep(folder)
        for folder in layout.folders:
            _keep(folder)

        candidates: dict[str, str] = {}
        for entry in folders:
            candidates.setdefault(folder_key(entry.folder), normalize_folder(entry.folder))
            if entry.foreign_entries:
                _keep(entry.folder)
        for item in observed:
            for folder in [item.folder, *folder_ancestors(item.folder)]:
                candidates.setdefault(folder_key(folder), normalize_folder(folder))

        for key, folder in candidates.items():
            if self._is_protected(folder):
                _keep(folder)

        removable = [folder for key, folder in candidates.items() if key not in keep]
        removable.sort(key=lambda folder: (-len(folder_parts(folder)), folder.casefold()))
        return removable

    def _is_protected(self, folder: str) -> bool:
        parts = folder_parts(folder)
        if not parts:
            return True
        return folder_key(folder) in self._protected or parts[-1].casefold() in self._protected


def _same_folder(left: str, right: str) -> bool:
    return folder_key(left) == folder_key(right)


def _free_name(name: str, occupied: set[str]) -> str:
    """Return `name`, or `stem (n).ext` with the lowest free n."""
    if name.casefold() not in occupied:
        return name
    stem, ext = os.path.splitext(name)
    counter = 1
    while True:
        candidate = f"{stem} ({counter}){ext}"
        if candidate.casefold() not in occupied:
            return candidate
        counter += 1


__all__ = ["Reconciler"]
