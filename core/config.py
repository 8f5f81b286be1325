import os

# ===================== CONFIG =====================
BASE_URL = os.environ.get("KANBAN_API_URL", "http://localhost:5000")
REQUEST_TIMEOUT = float(os.environ.get("KANBAN_REQUEST_TIMEOUT", "10"))
HTTP_RETRIES = int(os.environ.get("KANBAN_HTTP_RETRIES", "2"))  # solo verbos idempotentes

SYNC_INTERVAL_MS = int(os.environ.get("KANBAN_SYNC_INTERVAL_MS", "60000"))
UI_TICK_SECONDS = 0.02  # cada cuanto el loop asyncio bombea tkinter
TOPMOST = os.environ.get("KANBAN_TOPMOST", "0") == "1"
WINDOW_GEOMETRY = os.environ.get("KANBAN_WINDOW_GEOMETRY", "1100x640")

LOG_LEVEL = os.environ.get("KANBAN_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
