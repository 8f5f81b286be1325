from __future__ import annotations
import logging
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from typing import List, Dict, Any, Optional
from core.config import REQUEST_TIMEOUT, HTTP_RETRIES
from core.exceptions import ApiError, NotFoundError, TransportError

logger = logging.getLogger(__name__)


class BoardApiClient:
    """Blocking REST client for the remote authority (projects, tasks, reorder)."""

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT, retries: int = HTTP_RETRIES,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if session is None and retries:
            # urllib3 solo reintenta verbos idempotentes (GET/PUT/DELETE...), nunca POST/PATCH
            adapter = HTTPAdapter(max_retries=Retry(total=retries, backoff_factor=0.3,
                                                    status_forcelist=(502, 503, 504)))
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    # ---------- transport ----------
    def request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(f"{method} {path}: {e}") from e
        if r.status_code == 404:
            raise NotFoundError(f"{method} {path}: not found", status_code=404)
        if not r.ok:
            raise ApiError(f"{method} {path}: {r.status_code} {r.text}", status_code=r.status_code)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{method} {path}: invalid JSON response", status_code=r.status_code) from e

    # ---------- projects ----------
    def list_projects(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/projects") or []

    def create_project(self, *, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        payload = {"name": name}
        if description:
            payload["description"] = description
        return self.request("POST", "/api/projects", json=payload)

    def update_project(self, project_id: str, **fields) -> Dict[str, Any]:
        return self.request("PATCH", f"/api/projects/{project_id}", json=fields)

    def delete_project(self, project_id: str) -> None:
        self.request("DELETE", f"/api/projects/{project_id}")

    # ---------- tasks ----------
    def list_tasks(self, project_id: str) -> List[Dict[str, Any]]:
        return self.request("GET", f"/api/tasks/project/{project_id}") or []

    def create_task(self, *, project_id: str, title: str, description: Optional[str] = None,
                    status: str = "TODO") -> Dict[str, Any]:
        payload = {"projectId": project_id, "title": title, "status": status}
        if description:
            payload["description"] = description
        return self.request("POST", "/api/tasks", json=payload)

    def update_task(self, task_id: str, **fields) -> Dict[str, Any]:
        return self.request("PATCH", f"/api/tasks/{task_id}", json=fields)

    def delete_task(self, task_id: str) -> None:
        self.request("DELETE", f"/api/tasks/{task_id}")

    def reorder_task(self, task_id: str, to_status: str, to_index: int) -> Optional[Dict[str, Any]]:
        payload = {"taskId": task_id, "toStatus": to_status, "toIndex": to_index}
        return self.request("POST", "/api/tasks/reorder", json=payload)
