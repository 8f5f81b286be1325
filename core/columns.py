"""
Column projection for a board snapshot.

A board snapshot is a plain ``Dict[str, Task]`` keyed by task id. Columns are
never stored: they are always derived here, one order-sorted list per status.
"""
from typing import Dict, List, Mapping

from core.models import STATUS_KEYS, Task

Board = Dict[str, Task]
Columns = Dict[str, List[Task]]


def project_columns(board: Mapping[str, Task]) -> Columns:
    """Return {status: [tasks sorted by order]} with every status present."""
    columns: Columns = {status: [] for status in STATUS_KEYS}
    for task in board.values():
        columns.setdefault(task.status, []).append(task)
    for status in columns:
        # sort is stable: ties keep snapshot insertion order
        columns[status].sort(key=lambda t: t.order)
    return columns


def column_ids(board: Mapping[str, Task]) -> Dict[str, List[str]]:
    """Same as project_columns but only task ids; handy for comparisons and logs."""
    return {status: [t.id for t in tasks] for status, tasks in project_columns(board).items()}


def check_invariants(board: Mapping[str, Task]) -> List[str]:
    """Return a list of violations (empty when the board is consistent)."""
    issues = []
    for task_id, task in board.items():
        if task.id != task_id:
            issues.append(f"Key {task_id} holds task {task.id}")
        if task.status not in STATUS_KEYS:
            issues.append(f"Task {task.id} has unknown status {task.status!r}")
    for status, tasks in project_columns(board).items():
        orders = [t.order for t in tasks]
        if orders != list(range(len(tasks))):
            issues.append(f"Column {status} has non-dense order {orders}")
    return issues
