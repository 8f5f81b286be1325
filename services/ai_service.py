from typing import Optional, Set
from storage.board_api import BoardApiClient


class AIService:
    """Resúmenes y preguntas sobre proyectos/tareas, resueltos por el backend."""
    def __init__(self, client: BoardApiClient):
        self.client = client

    def summarize_project(self, project_id: str) -> str:
        data = self.client.request("GET", f"/api/ai/summarize/{project_id}") or {}
        return data.get("summary") or ""

    def summarize_task(self, task_id: str) -> str:
        data = self.client.request("GET", f"/api/ai/summarize-task/{task_id}") or {}
        return data.get("summary") or ""

    def ask(self, task_id: str, question: str) -> str:
        question = (question or "").strip()
        if not question:
            raise ValueError("Question is empty")
        data = self.client.request("POST", "/api/ai/qa", json={"taskId": task_id, "question": question}) or {}
        return data.get("answer") or ""


class SummaryGuard:
    """One-shot auto-summarize flag per entity, reset explicitly on context change."""
    def __init__(self):
        self._done: Set[str] = set()

    def claim(self, key: str) -> bool:
        """True only the first time ``key`` is claimed since the last reset."""
        if key in self._done:
            return False
        self._done.add(key)
        return True

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._done.clear()
        else:
            self._done.discard(key)
