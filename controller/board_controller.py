"""
Reconciliation controller for one project board.

Every move goes through the same small state machine::

    APPLIED (optimistic, synchronous) -> SETTLING -> MERGED | ROLLED_BACK

``submit_move`` mutates the store before returning, then a background
asyncio task calls the authority and either merges its answer or restores
the snapshot captured at submission. Both paths end with a background
refresh. Blocking HTTP calls run in worker threads via ``asyncio.to_thread``;
everything touching the store runs on the event loop thread.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Set

from core.columns import Board, Columns, check_invariants
from core.exceptions import ApiError, NotFoundError
from core.models import ERROR, INFO, STATUS_KEYS, WARNING, Notification, Task
from core.move import diff_boards, move_task, normalize_orders
from storage.board_api import BoardApiClient
from storage.task_store import TaskStore, board_from_records

logger = logging.getLogger(__name__)

Notifier = Callable[[Notification], None]


class MoveState(Enum):
    APPLIED = "applied"
    SETTLING = "settling"
    MERGED = "merged"
    ROLLED_BACK = "rolled_back"


@dataclass(eq=False)
class PendingMove:
    """Handle for one submitted move; await ``wait()`` for its outcome."""
    move_id: int
    task_id: str
    to_status: str
    to_index: int
    snapshot: Board = field(repr=False)
    state: MoveState = MoveState.APPLIED
    result: Optional[Task] = None
    error: Optional[Exception] = None
    handle: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def settled(self) -> bool:
        return self.state in (MoveState.MERGED, MoveState.ROLLED_BACK)

    async def wait(self) -> MoveState:
        if self.handle is not None:
            await self.handle
        return self.state


class BoardController:
    def __init__(self, client: BoardApiClient, store: TaskStore, notifier: Optional[Notifier] = None):
        self.client = client
        self.store = store
        self.notifier = notifier
        self._moves: List[PendingMove] = []
        self._next_move_id = 1
        self._tasks: Set[asyncio.Task] = set()
        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_queued = False

    @property
    def project_id(self) -> str:
        return self.store.project_id

    # ---------- presentation API ----------
    def current_columns(self) -> Columns:
        return self.store.columns()

    def subscribe(self, callback) -> Callable[[], None]:
        return self.store.subscribe(callback)

    def pending_moves(self) -> List[PendingMove]:
        return [m for m in self._moves if not m.settled]

    # ---------- moves ----------
    def submit_move(self, task_id: str, to_status: str, to_index: int) -> Optional[PendingMove]:
        """Apply the move locally right away and reconcile with the authority in the background.

        Must be called from a running event loop. Returns None (no-op) when the
        task is not on the board or the status is unknown.
        """
        loop = asyncio.get_running_loop()
        if task_id not in self.store:
            logger.warning(f"submit_move ignored: task {task_id} not in project {self.project_id}")
            return None
        if to_status not in STATUS_KEYS:
            logger.warning(f"submit_move ignored: unknown status {to_status!r}")
            return None

        snapshot = self.store.snapshot()
        self.store.apply(diff_boards(snapshot, move_task(snapshot, task_id, to_status, to_index)))
        self.store.begin_pending()

        move = PendingMove(self._next_move_id, task_id, to_status, to_index, snapshot)
        self._next_move_id += 1
        self._moves.append(move)
        move.handle = self._spawn(self._settle(move), loop)
        logger.debug(f"Move #{move.move_id} applied: {task_id} -> {to_status}[{to_index}]")
        return move

    async def _settle(self, move: PendingMove) -> None:
        move.state = MoveState.SETTLING
        try:
            record = await asyncio.to_thread(
                self.client.reorder_task, move.task_id, move.to_status, move.to_index
            )
        except Exception as e:
            move.error = e
            move.state = MoveState.ROLLED_BACK
            self._rollback(move)
            if isinstance(e, NotFoundError):
                logger.warning(f"Move #{move.move_id} rolled back, task {move.task_id} gone: {e}")
                self._notify("Task no longer exists; the board will refresh.", WARNING)
            elif isinstance(e, ApiError):
                logger.error(f"Move #{move.move_id} rolled back: {e}")
                self._notify(f"Could not move task: {e}", ERROR)
            else:
                logger.exception(f"Move #{move.move_id} rolled back after unexpected error")
                self._notify("Could not move task.", ERROR)
        else:
            move.result = self._parse_result(move, record)
            move.state = MoveState.MERGED
            self._merge(move.result)
            logger.info(f"Move #{move.move_id} confirmed: {move.task_id} -> {move.to_status}[{move.to_index}]")
        finally:
            self.store.end_pending()
            self._forget_settled()
            self.schedule_refresh()

    def _parse_result(self, move: PendingMove, record) -> Optional[Task]:
        if not record:
            return None
        try:
            return Task.from_record(record)
        except ValueError as e:
            # la tarea ya se movió en el servidor: el refresh trae el registro bueno
            logger.warning(f"Move #{move.move_id} confirmed with an unusable record: {e}")
            return None

    def _merge(self, task: Optional[Task]) -> None:
        if task is None:
            return
        if task.id not in self.store:
            logger.info(f"Not merging {task.id}: removed from the board meanwhile")
            return
        self.store.apply({task.id: task})
        for issue in check_invariants(self.store.snapshot()):
            logger.warning(f"Drift after merging {task.id} in project {self.project_id}: {issue}")

    def _rollback(self, move: PendingMove) -> None:
        """Go back to the last known good positions without undoing unrelated work.

        Positions come from the snapshot taken before the oldest move still in
        history, so earlier moves that were rolled back stay undone even though
        this move's own snapshot contains them. Every move in history that was
        not rolled back is then replayed in submission order. Tasks deleted
        meanwhile stay deleted, tasks created meanwhile stay, and edits keep
        their fields (only status/order revert).
        """
        current = self.store.snapshot()
        base = self._moves[0].snapshot if self._moves else move.snapshot
        board: Board = {}
        for task_id, before in base.items():
            now = current.get(task_id)
            if now is not None:
                board[task_id] = replace(now, status=before.status, order=before.order)
        for task_id, task in current.items():
            board.setdefault(task_id, task)

        for other in self._moves:
            if other is move or other.state is MoveState.ROLLED_BACK:
                continue
            if other.task_id not in board:
                continue
            board = move_task(board, other.task_id, other.to_status, other.to_index)
            if other.state is MoveState.MERGED and other.result is not None and other.result.id in board:
                board[other.result.id] = other.result
        self.store.restore(normalize_orders(board))

    def _forget_settled(self) -> None:
        # la historia solo hace falta para reproducir movimientos mientras alguno sigue en vuelo
        if all(m.settled for m in self._moves):
            self._moves.clear()

    # ---------- refresh ----------
    async def load(self) -> Board:
        """Initial hydrate; errors propagate to the caller."""
        epoch = self.store.epoch
        records = await asyncio.to_thread(self.client.list_tasks, self.project_id)
        self.store.replace(board_from_records(records), epoch=epoch)
        return self.store.snapshot()

    async def refresh(self) -> bool:
        # una lista pedida antes de un movimiento nuevo ya no sirve; la descarta el store
        epoch = self.store.epoch
        try:
            records = await asyncio.to_thread(self.client.list_tasks, self.project_id)
            board = board_from_records(records)
        except NotFoundError as e:
            logger.warning(f"Refresh of project {self.project_id}: {e}")
            self._notify("Project no longer exists.", WARNING)
            return False
        except ApiError as e:
            logger.error(f"Refresh of project {self.project_id} failed: {e}")
            self._notify("Could not refresh the board.", WARNING)
            return False
        except ValueError as e:
            logger.error(f"Refresh of project {self.project_id} returned a bad record: {e}")
            return False
        return self.store.replace(board, epoch=epoch)

    def schedule_refresh(self) -> asyncio.Task:
        """Refresh in the background; coalesces into one in flight plus one queued."""
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_queued = True
            return self._refresh_task
        self._refresh_queued = False
        self._refresh_task = self._spawn(self._refresh_loop())
        return self._refresh_task

    async def _refresh_loop(self) -> None:
        await self.refresh()
        while self._refresh_queued:
            self._refresh_queued = False
            await self.refresh()

    # ---------- pass-through mutations ----------
    async def create_task(self, title: str, description: Optional[str] = None) -> Optional[Task]:
        try:
            record = await asyncio.to_thread(
                self.client.create_task, project_id=self.project_id, title=title, description=description
            )
            task = Task.from_record(record) if record else None
        except ApiError as e:
            logger.error(f"Create task in {self.project_id} failed: {e}")
            self._notify(f"Could not create task: {e}", ERROR)
            return None
        if task is not None and task.id not in self.store:
            self.store.apply({task.id: task})
        self.schedule_refresh()
        return task

    async def update_task(self, task_id: str, **fields) -> Optional[Task]:
        try:
            record = await asyncio.to_thread(self.client.update_task, task_id, **fields)
            task = Task.from_record(record) if record else None
        except NotFoundError as e:
            logger.warning(f"Update of {task_id}: {e}")
            self.store.remove(task_id)
            self._notify("Task no longer exists.", WARNING)
            self.schedule_refresh()
            return None
        except ApiError as e:
            logger.error(f"Update of {task_id} failed: {e}")
            self._notify(f"Could not update task: {e}", ERROR)
            return None
        self._merge(task)
        self.schedule_refresh()
        return task

    async def delete_task(self, task_id: str) -> bool:
        try:
            await asyncio.to_thread(self.client.delete_task, task_id)
        except NotFoundError as e:
            logger.warning(f"Delete of {task_id}: {e}")
        except ApiError as e:
            logger.error(f"Delete of {task_id} failed: {e}")
            self._notify(f"Could not delete task: {e}", ERROR)
            return False
        self.store.remove(task_id)
        self._notify("Task deleted.", INFO)
        self.schedule_refresh()
        return True

    # ---------- plumbing ----------
    def _spawn(self, coro, loop: Optional[asyncio.AbstractEventLoop] = None) -> asyncio.Task:
        task = (loop or asyncio.get_running_loop()).create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _notify(self, message: str, severity: str = INFO) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(Notification(message, severity))
        except Exception:
            logger.exception("Notifier failed")

    async def aclose(self) -> None:
        """Wait for every outstanding settle/refresh task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
