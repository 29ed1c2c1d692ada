"""Layout reconciliation and plan execution."""

from .executor import PlanExecutor
from .models import (
    ActionPlan,
    ActionResult,
    DeleteDuplicateAction,
    DeleteEmptyFolderAction,
    ExecutionReport,
    MoveAction,
    QuarantineAction,
    RecreateAction,
)
from .reconciler import Reconciler

__all__ = [
    "PlanExecutor",
    "Reconciler",
    "ActionPlan",
    "ActionResult",
    "DeleteDuplicateAction",
    "DeleteEmptyFolderAction",
    "ExecutionReport",
    "MoveAction",
    "QuarantineAction",
    "RecreateAction",
]
