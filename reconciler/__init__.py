"""
Client-side selection state.

Exports:
    SelectionReconciler: Optimistic local view of a student's selections
"""

from reconciler.selection_reconciler import (
    SelectionReconciler,
    SAVE_FAILED_MESSAGE,
    REFRESH_FAILED_MESSAGE,
)

__all__ = [
    "SelectionReconciler",
    "SAVE_FAILED_MESSAGE",
    "REFRESH_FAILED_MESSAGE",
]
