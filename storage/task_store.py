"""
In-memory task cache for one project.

The store is the single source of truth for the rendered board. It only
swaps whole snapshots or applies point patches; it never computes moves
itself (see core.move) and never talks to the network.
"""
from __future__ import annotations
import logging
from typing import Callable, Dict, List, Mapping, Optional

from core.columns import Board, Columns, project_columns
from core.models import Task
from core.move import normalize_orders

logger = logging.getLogger(__name__)

Subscriber = Callable[[Board], None]


class TaskStore:
    def __init__(self, project_id: str, board: Optional[Mapping[str, Task]] = None):
        self.project_id = project_id
        self._board: Board = dict(board or {})
        self._subscribers: List[Subscriber] = []
        self._pending = 0
        self._held: Optional[Board] = None
        self.version = 0
        # sube con cada movimiento optimista; marca como viejas las listas pedidas antes
        self.epoch = 0

    # ---------- reads ----------
    def snapshot(self) -> Board:
        return dict(self._board)

    def columns(self) -> Columns:
        return project_columns(self._board)

    def get(self, task_id: str) -> Optional[Task]:
        return self._board.get(task_id)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._board

    def __len__(self) -> int:
        return len(self._board)

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def has_held_replacement(self) -> bool:
        return self._held is not None

    # ---------- subscriptions ----------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self) -> None:
        board = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(board)
            except Exception:
                logger.exception(f"Store subscriber failed for project {self.project_id}")

    def _set(self, board: Board) -> bool:
        if board == self._board:
            return False
        self._board = board
        self.version += 1
        self._notify()
        return True

    # ---------- writes ----------
    def replace(self, board: Mapping[str, Task], epoch: Optional[int] = None) -> bool:
        """Swap in the authority's snapshot.

        ``epoch`` is the value of ``self.epoch`` when the snapshot was requested;
        a snapshot requested before the latest optimistic move is dropped. While
        an optimistic move is pending the snapshot is held and applied once the
        last pending move settles. Returns True if applied now.
        """
        if epoch is not None and epoch != self.epoch:
            logger.debug(f"Dropping stale refresh for project {self.project_id} (epoch {epoch} < {self.epoch})")
            return False
        if self._pending:
            logger.debug(f"Holding refresh for project {self.project_id}: {self._pending} move(s) pending")
            self._held = dict(board)
            return False
        self._set(dict(board))
        return True

    def restore(self, board: Mapping[str, Task]) -> None:
        """Wholesale swap that ignores the hold rule (a move's own rollback)."""
        self._set(dict(board))

    def apply(self, patch: Mapping[str, Optional[Task]]) -> None:
        """Point updates: id -> Task to upsert, id -> None to drop."""
        board = dict(self._board)
        for task_id, task in patch.items():
            if task is None:
                board.pop(task_id, None)
            else:
                board[task_id] = task
        self._set(board)

    def remove(self, task_id: str) -> bool:
        """Drop a task and close the gap it leaves in its column."""
        if task_id not in self._board:
            return False
        board = dict(self._board)
        del board[task_id]
        self._set(normalize_orders(board))
        return True

    # ---------- optimistic window ----------
    def begin_pending(self) -> None:
        self._pending += 1
        self.epoch += 1
        # lo retenido es anterior a este movimiento
        self._held = None

    def end_pending(self) -> None:
        if self._pending == 0:
            logger.warning(f"end_pending without matching begin_pending for project {self.project_id}")
            return
        self._pending -= 1
        if self._pending == 0 and self._held is not None:
            held, self._held = self._held, None
            logger.debug(f"Applying held refresh for project {self.project_id}")
            self._set(held)


def board_from_records(records) -> Dict[str, Task]:
    """Build a snapshot from the authority's task list."""
    board: Dict[str, Task] = {}
    for record in records or []:
        task = Task.from_record(record)
        board[task.id] = task
    return board
