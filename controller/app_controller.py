import asyncio
import logging
from typing import Callable, Dict, List, Optional
from core.exceptions import ApiError
from core.models import ERROR, Notification, Project
from storage.board_api import BoardApiClient
from storage.task_store import TaskStore
from services.ai_service import AIService, SummaryGuard
from controller.board_controller import BoardController
from controller.drag_adapter import DragAdapter

logger = logging.getLogger(__name__)


class AppController:
    """Coordina la UI con el backend: proyectos, un tablero por proyecto e IA."""
    def __init__(self, client: BoardApiClient):
        self.client = client
        self.ai = AIService(client)
        self.summary_guard = SummaryGuard()
        self.boards: Dict[str, BoardController] = {}
        self._listeners: List[Callable[[Notification], None]] = []

    # ---- notifications ----
    def add_listener(self, callback: Callable[[Notification], None]):
        self._listeners.append(callback)

    def notify(self, notification: Notification):
        for callback in list(self._listeners):
            try:
                callback(notification)
            except Exception:
                logger.exception("Notification listener failed")

    # ---- projects ----
    async def load_projects(self) -> List[Project]:
        records = await asyncio.to_thread(self.client.list_projects)
        return [Project.from_record(r) for r in records]

    async def create_project(self, name: str, description: Optional[str] = None) -> Optional[Project]:
        try:
            record = await asyncio.to_thread(self.client.create_project, name=name, description=description)
        except ApiError as e:
            self.notify(Notification(f"Could not create project: {e}", ERROR))
            return None
        return Project.from_record(record)

    async def rename_project(self, project_id: str, name: str) -> Optional[Project]:
        try:
            record = await asyncio.to_thread(self.client.update_project, project_id, name=name)
        except ApiError as e:
            self.notify(Notification(f"Could not rename project: {e}", ERROR))
            return None
        return Project.from_record(record) if record else None

    async def delete_project(self, project_id: str) -> bool:
        try:
            await asyncio.to_thread(self.client.delete_project, project_id)
        except ApiError as e:
            self.notify(Notification(f"Could not delete project: {e}", ERROR))
            return False
        board = self.boards.pop(project_id, None)
        if board is not None:
            await board.aclose()
        return True

    # ---- boards ----
    def board(self, project_id: str) -> BoardController:
        """Tablero del proyecto; se crea (vacío) la primera vez."""
        board = self.boards.get(project_id)
        if board is None:
            board = BoardController(self.client, TaskStore(project_id), notifier=self.notify)
            self.boards[project_id] = board
        return board

    def drag_adapter(self, project_id: str) -> DragAdapter:
        return DragAdapter(self.board(project_id))

    def refresh_all(self):
        for board in self.boards.values():
            board.schedule_refresh()

    # ---- AI ----
    async def summarize_project(self, project_id: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self.ai.summarize_project, project_id)
        except ApiError as e:
            self.notify(Notification(f"Failed to summarize project: {e}", ERROR))
            return None

    async def summarize_task(self, task_id: str, auto: bool = False) -> Optional[str]:
        """Resumen de una tarea; con auto=True solo corre una vez por tarea y sesión."""
        if auto and not self.summary_guard.claim(task_id):
            return None
        try:
            return await asyncio.to_thread(self.ai.summarize_task, task_id)
        except ApiError as e:
            self.notify(Notification(f"Failed to summarize task: {e}", ERROR))
            return None

    async def ask_about_task(self, task_id: str, question: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self.ai.ask, task_id, question)
        except ApiError as e:
            self.notify(Notification(f"Failed to get answer: {e}", ERROR))
            return None

    def switch_project(self):
        """Cambio de contexto: el auto-resumen vuelve a estar disponible."""
        self.summary_guard.reset()

    async def aclose(self):
        for board in list(self.boards.values()):
            await board.aclose()
