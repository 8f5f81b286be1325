"""Shared fixtures: board builders and an in-process fake of the remote authority."""

import threading

import pytest

from core.exceptions import NotFoundError
from core.models import STATUS_KEYS, Task
from core.move import move_task, normalize_orders
from storage.task_store import board_from_records


def build_board(columns, project="p1"):
    """{"TODO": ["a", "b"], "DONE": ["c"]} -> dense board keyed by id."""
    board = {}
    for status in STATUS_KEYS:
        for order, task_id in enumerate(columns.get(status, [])):
            board[task_id] = Task(id=task_id, title=f"Task {task_id}", status=status, order=order, project=project)
    return board


def task_record(task):
    """Server-shaped JSON for a Task, as the REST API returns it."""
    record = dict(task.extra)
    record.update({"_id": task.id, "title": task.title, "description": task.description,
                   "status": task.status, "order": task.order, "project": task.project})
    return record


class FakeAuthority:
    """Thread-safe stand-in for BoardApiClient backed by a dict of records.

    ``gate(task_id)`` makes the next reorder of that task block until the
    returned Event is set; ``fail[task_id] = exc`` makes it raise instead.
    """

    def __init__(self, board=None, project="p1"):
        self.project = project
        self.lock = threading.Lock()
        self.records = {t.id: task_record(t) for t in (board or {}).values()}
        self.gates = {}
        self.fail = {}
        self.list_gate = None
        self.list_error = None
        self.list_calls = 0
        self.reorder_calls = []
        self.result_override = {}
        self._next_id = 1

    def gate(self, task_id):
        event = threading.Event()
        self.gates[task_id] = event
        return event

    def _board(self):
        return board_from_records(self.records.values())

    def list_tasks(self, project_id):
        self.list_calls += 1
        if self.list_gate is not None:
            self.list_gate.wait(timeout=5)
        if self.list_error is not None:
            raise self.list_error
        with self.lock:
            return [dict(r) for r in self.records.values()]

    def reorder_task(self, task_id, to_status, to_index):
        self.reorder_calls.append((task_id, to_status, to_index))
        gate = self.gates.pop(task_id, None)
        if gate is not None:
            gate.wait(timeout=5)
        if task_id in self.fail:
            raise self.fail.pop(task_id)
        with self.lock:
            board = move_task(self._board(), task_id, to_status, to_index)
            self.records = {t.id: task_record(t) for t in board.values()}
            record = dict(self.records[task_id])
        record.update(self.result_override.get(task_id, {}))
        return record

    def create_task(self, *, project_id, title, description=None, status="TODO"):
        with self.lock:
            task_id = f"new{self._next_id}"
            self._next_id += 1
            order = sum(1 for r in self.records.values() if r["status"] == status)
            task = Task(id=task_id, title=title, description=description, status=status,
                        order=order, project=project_id)
            self.records[task_id] = task_record(task)
            return dict(self.records[task_id])

    def update_task(self, task_id, **fields):
        with self.lock:
            if task_id not in self.records:
                raise NotFoundError("not found", status_code=404)
            self.records[task_id].update(fields)
            return dict(self.records[task_id])

    def delete_task(self, task_id):
        with self.lock:
            if task_id not in self.records:
                raise NotFoundError("not found", status_code=404)
            del self.records[task_id]
            board = normalize_orders(self._board())
            self.records = {t.id: task_record(t) for t in board.values()}


@pytest.fixture
def make_board():
    return build_board


@pytest.fixture
def make_record():
    return task_record


@pytest.fixture
def make_authority():
    return FakeAuthority


@pytest.fixture
def notifications():
    """List that collects every Notification passed to the notifier."""
    return []
