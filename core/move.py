"""
Pure board transitions: moving a task and re-densifying column order.

Nothing here performs I/O or mutates its input; every function returns a new
snapshot (tasks that did not change are shared with the input).
"""
import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from core.columns import Board, project_columns
from core.models import STATUS_KEYS, Task

logger = logging.getLogger(__name__)


def _rebuild(board: Mapping[str, Task], columns: Dict[str, List[Task]]) -> Board:
    """Assign order 0..n-1 per column and keep the snapshot's key order."""
    updated: Board = {}
    for tasks in columns.values():
        for index, task in enumerate(tasks):
            updated[task.id] = task if task.order == index else replace(task, order=index)
    result = {task_id: updated[task_id] for task_id in board if task_id in updated}
    # tasks that only exist in the columns (not expected, but never drop one)
    for task_id, task in updated.items():
        result.setdefault(task_id, task)
    return result


def normalize_orders(board: Mapping[str, Task]) -> Board:
    """Re-densify every column, preserving the relative order of its tasks."""
    return _rebuild(board, project_columns(board))


def move_task(board: Mapping[str, Task], task_id: str, to_status: str, to_index: int) -> Board:
    """Move ``task_id`` to position ``to_index`` of column ``to_status``.

    ``to_index`` is the position inside the destination column once the moved
    task has been taken out of it, clamped to [0, len]. An unknown task or
    status leaves the board unchanged.
    """
    task = board.get(task_id)
    if task is None:
        logger.warning(f"Move ignored: task {task_id} not on the board")
        return dict(board)
    if to_status not in STATUS_KEYS:
        logger.warning(f"Move ignored: unknown status {to_status!r} for task {task_id}")
        return dict(board)

    columns = project_columns(board)
    columns[task.status] = [t for t in columns[task.status] if t.id != task_id]
    destination = columns[to_status]
    index = max(0, min(int(to_index), len(destination)))
    moved = task if task.status == to_status else replace(task, status=to_status)
    destination.insert(index, moved)
    return _rebuild(board, columns)


def diff_boards(before: Mapping[str, Task], after: Mapping[str, Task]) -> Dict[str, Optional[Task]]:
    """Patch that turns ``before`` into ``after`` (None marks a removal)."""
    patch: Dict[str, Optional[Task]] = {
        task_id: task for task_id, task in after.items() if before.get(task_id) != task
    }
    for task_id in before:
        if task_id not in after:
            patch[task_id] = None
    return patch
