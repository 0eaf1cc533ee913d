"""Board synchronization: converter, state, engine and drag coordination."""

from .drag import DragCoordinator, DragOutcome, DragState, Droppable, DroppableKind
from .engine import BoardSyncEngine, to_sync_error
from .state import BoardSnapshot, BoardTreeState

__all__ = [
    "BoardSnapshot",
    "BoardSyncEngine",
    "BoardTreeState",
    "DragCoordinator",
    "DragOutcome",
    "DragState",
    "Droppable",
    "DroppableKind",
    "to_sync_error",
]
