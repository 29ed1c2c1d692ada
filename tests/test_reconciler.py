"""Reconciler tests."""

from __future__ import annotations

from pathlib import Path

from menukeeper.layout import LayoutModel, ShortcutMetadata
from menukeeper.naming import NameNormalizer
from menukeeper.organization import (
    DeleteDuplicateAction,
    DeleteEmptyFolderAction,
    MoveAction,
    QuarantineAction,
    Reconciler,
    RecreateAction,
)
from menukeeper.scanning import ObservedFolder, ObservedShortcut


def _reconciler(**kwargs) -> Reconciler:
    kwargs.setdefault("quarantine_folder", "Unsorted")
    return Reconciler(NameNormalizer(), **kwargs)


def _item(folder: str, name: str) -> ObservedShortcut:
    return ObservedShortcut(name=name, folder=folder, path=Path("/menu") / folder / name)


def _layout(folders: dict) -> LayoutModel:
    return LayoutModel.model_validate({"folders": folders})


def test_example_scenario_moves_versioned_shortcut() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"], "Programs\\Dev": ["VSCode.lnk"]})
    observed = [_item("Root", "Chrome v120.lnk"), _item("Programs\\Dev", "VSCode.lnk")]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.moves == [
        MoveAction(name="Chrome v120.lnk", source_folder="Root", target_folder="Programs")
    ]
    assert plan.total == 1


def test_unknown_items_are_quarantined() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("Programs", "Chrome.lnk"), _item("Games", "Solitaire v2.lnk")]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.moves == []
    assert plan.recreations == []
    assert plan.quarantines == [
        QuarantineAction(name="Solitaire v2.lnk", source_folder="Games", target_folder="Unsorted")
    ]


def test_correctly_placed_item_with_other_version_is_left_alone() -> None:
    layout = _layout({"Programs": ["Python 3.11.lnk"]})

    plan = _reconciler().reconcile(layout, [_item("programs", "Python 3.12 (64-bit).lnk")])

    assert plan.is_empty


def test_variants_require_exact_full_names() -> None:
    layout = _layout(
        {
            "Tools\\64": ["Tool (64-bit).lnk"],
            "Tools\\32": ["Tool (32-bit).lnk"],
        }
    )
    observed = [
        _item("Root", "Tool (64-bit).lnk"),
        _item("Root", "Tool.lnk"),
        _item("Tools\\32", "Tool (32-bit).lnk"),
    ]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.moves == [
        MoveAction(name="Tool (64-bit).lnk", source_folder="Root", target_folder="Tools\\64")
    ]
    assert [action.name for action in plan.quarantines] == ["Tool.lnk"]


def test_duplicate_outside_expected_folder_is_deleted() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("Root", "Chrome.lnk"), _item("Programs", "Chrome v2.lnk")]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.duplicate_deletes == [DeleteDuplicateAction(name="Chrome.lnk", folder="Root")]
    assert plan.moves == []


def test_duplicates_both_placed_delete_second_seen() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("Programs", "Chrome.lnk"), _item("Programs", "Chrome v2.lnk")]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.duplicate_deletes == [DeleteDuplicateAction(name="Chrome v2.lnk", folder="Programs")]
    assert plan.moves == []


def test_duplicates_both_misplaced_move_first_delete_second() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("Root", "Chrome.lnk"), _item("Other", "Chrome.lnk")]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.duplicate_deletes == [DeleteDuplicateAction(name="Chrome.lnk", folder="Other")]
    assert plan.moves == [
        MoveAction(name="Chrome.lnk", source_folder="Root", target_folder="Programs")
    ]


def test_unknown_duplicates_get_numbered_names() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("A", "Notes.lnk"), _item("B", "Notes.lnk"), _item("C", "Notes.lnk")]

    forward = _reconciler().reconcile(layout, observed)
    backward = _reconciler().reconcile(layout, list(reversed(observed)))

    expected = {"Notes.lnk", "Notes (1).lnk", "Notes (2).lnk"}
    assert {action.destination_name for action in forward.quarantines} == expected
    assert {action.destination_name for action in backward.quarantines} == expected
    assert forward.quarantines[0].rename_to is None
    assert forward.quarantines[1].rename_to == "Notes (1).lnk"


def test_item_already_in_quarantine_keeps_its_name() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("A", "Notes.lnk"), _item("Unsorted", "Notes.lnk")]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.quarantines == [
        QuarantineAction(
            name="Notes.lnk",
            source_folder="A",
            target_folder="Unsorted",
            rename_to="Notes (1).lnk",
        )
    ]


def test_missing_items_recreated_only_with_target() -> None:
    layout = _layout(
        {
            "Tools": {"Editor.lnk": {"target_path": "C:\\editor.exe", "arguments": "-n"}},
            "Games": ["Solitaire.lnk"],
        }
    )

    plan = _reconciler().reconcile(layout, [])

    assert plan.recreations == [
        RecreateAction(
            name="Editor.lnk",
            folder="Tools",
            metadata=ShortcutMetadata(target_path="C:\\editor.exe", arguments="-n"),
        )
    ]
    assert any("Solitaire.lnk" in note for note in plan.notes)


def test_versioned_layout_name_is_satisfied_by_other_version() -> None:
    layout = _layout({"Tools": {"Editor 1.0.lnk": {"target_path": "C:\\editor.exe"}}})

    plan = _reconciler().reconcile(layout, [_item("Tools", "Editor 2.0.lnk")])

    assert plan.is_empty


def test_empty_folder_cleanup() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"], "Keep": []})
    observed = [_item("Old\\Sub", "Chrome.lnk")]
    folders = [
        ObservedFolder(folder="Root"),
        ObservedFolder(folder="Fresh"),
        ObservedFolder(folder="Keep"),
        ObservedFolder(folder="Notes", foreign_entries=("readme.txt",)),
        ObservedFolder(folder="Old"),
        ObservedFolder(folder="Old\\Sub"),
        ObservedFolder(folder="Programs"),
        ObservedFolder(folder="Startup"),
    ]

    plan = _reconciler(protected_folders=["Startup"]).reconcile(layout, observed, folders)

    assert plan.moves == [
        MoveAction(name="Chrome.lnk", source_folder="Old\\Sub", target_folder="Programs")
    ]
    assert plan.empty_folder_deletes == [
        DeleteEmptyFolderAction(folder="Old\\Sub"),
        DeleteEmptyFolderAction(folder="Fresh"),
        DeleteEmptyFolderAction(folder="Old"),
    ]


def test_folder_receiving_quarantined_items_is_kept() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    observed = [_item("Stray", "Notes.lnk")]
    folders = [ObservedFolder(folder="Root"), ObservedFolder(folder="Stray")]

    plan = _reconciler(quarantine_folder="Stray\\Inbox").reconcile(layout, observed, folders)

    assert plan.quarantines[0].target_folder == "Stray\\Inbox"
    assert plan.empty_folder_deletes == []


def test_protected_folder_matches_by_leaf_name() -> None:
    layout = _layout({"Programs": ["Chrome.lnk"]})
    folders = [
        ObservedFolder(folder="Root"),
        ObservedFolder(folder="Windows Tools"),
        ObservedFolder(folder="Windows Tools\\Administrative Tools"),
    ]

    plan = _reconciler(protected_folders=["Administrative Tools"]).reconcile(layout, [], folders)

    assert plan.empty_folder_deletes == []


def test_same_name_in_two_layout_folders_first_wins() -> None:
    layout = _layout({"A": ["Readme.lnk"], "B": ["Readme.lnk"]})

    plan = _reconciler().reconcile(layout, [_item("B", "Readme.lnk")])

    assert plan.moves == [MoveAction(name="Readme.lnk", source_folder="B", target_folder="A")]
    assert any("first folder wins" in note for note in plan.notes)


def test_names_differing_only_by_case_match() -> None:
    layout = _layout(
        {
            "Programs": {"Chrome.lnk": {"target_path": "C:\\chrome.exe"}},
            "Tools\\64": ["Tool (64-bit).lnk"],
            "Tools\\32": ["Tool (32-bit).lnk"],
        }
    )
    observed = [
        _item("programs", "chrome.lnk"),
        _item("Root", "TOOL (64-BIT).lnk"),
        _item("Tools\\32", "tool (32-bit).lnk"),
    ]

    plan = _reconciler().reconcile(layout, observed)

    assert plan.recreations == []
    assert plan.quarantines == []
    assert plan.moves == [
        MoveAction(name="TOOL (64-BIT).lnk", source_folder="Root", target_folder="Tools\\64")
    ]


def test_known_shortcut_in_quarantine_folder_reserves_its_name() -> None:
    layout = _layout({"Unsorted": ["Notes (1).lnk"]})
    observed = [
        _item("Unsorted", "notes (1).lnk"),
        _item("A", "Notes.lnk"),
        _item("B", "Notes.lnk"),
    ]

    plan = _reconciler().reconcile(layout, observed)

    assert [action.destination_name for action in plan.quarantines] == [
        "Notes.lnk",
        "Notes (2).lnk",
    ]
