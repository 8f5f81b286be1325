import asyncio
import logging
import tkinter as tk
from tkinter import ttk, messagebox as mb, simpledialog as sd
import datetime as dt
from core.config import SYNC_INTERVAL_MS, TOPMOST, WINDOW_GEOMETRY
from core.exceptions import BoardError
from core.models import ERROR, WARNING, Notification, Project
from controller.app_controller import AppController
from gui.board_view import BoardView

logger = logging.getLogger(__name__)


def spawn(coro):
    """Lanza una corrutina en el loop que bombea tkinter."""
    return asyncio.get_running_loop().create_task(coro)


class MainWindow(tk.Tk):
    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller
        self.alive = True
        self.title("Kanban · Proyectos")
        self.geometry(WINDOW_GEOMETRY)
        self.configure(padx=8, pady=8)
        if TOPMOST:
            self.attributes("-topmost", True)
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        # Top bar
        top = ttk.Frame(self)
        top.pack(fill="x", pady=(0, 6))
        ttk.Button(top, text="Resumen IA", command=self._on_summarize_project).pack(side="right", padx=(6, 0))
        ttk.Button(top, text="Nuevo proyecto", command=self._on_new_project).pack(side="right", padx=(6, 0))
        ttk.Button(top, text="Renombrar", command=self._on_rename_project).pack(side="right", padx=(6, 0))
        ttk.Button(top, text="Sync", command=self._sync_all).pack(side="right")
        self.status_var = tk.StringVar(value="Listo")
        ttk.Label(top, textvariable=self.status_var).pack(side="left")

        # Notebook
        self.nb = ttk.Notebook(self)
        self.nb.pack(fill="both", expand=True)
        self.nb.bind("<<NotebookTabChanged>>", lambda e: self.controller.switch_project())

        self.tabs = {}  # project_id -> ProjectTab
        self.controller.add_listener(self._on_notification)

        # timers / binds
        self.bind("<F5>", lambda e: self._sync_all())
        self.after(SYNC_INTERVAL_MS, self._auto_sync)

    # ---------- tabs ----------
    async def build_tabs(self):
        try:
            projects = await self.controller.load_projects()
        except BoardError as e:
            mb.showerror("Proyectos", f"No se pudieron cargar proyectos: {e}")
            return
        for p in projects:
            self._add_tab(p)

    def _add_tab(self, project: Project):
        tab = ProjectTab(self.nb, self.controller, project)
        self.nb.add(tab, text=project.name or "Proyecto")
        self.tabs[project.id] = tab
        spawn(tab.load())

    def current_tab(self):
        if not self.tabs:
            return None
        return self.nametowidget(self.nb.select())

    # ---------- sync ----------
    def _sync_all(self):
        self.controller.refresh_all()
        self.status_var.set(f"Sincronizado {dt.datetime.now().strftime('%H:%M:%S')}")

    def _auto_sync(self):
        try:
            self._sync_all()
        finally:
            self.after(SYNC_INTERVAL_MS, self._auto_sync)

    # ---------- notifications ----------
    def _on_notification(self, notification: Notification):
        self.status_var.set(notification.message)
        if notification.severity == ERROR:
            mb.showerror("Kanban", notification.message)
        elif notification.severity == WARNING:
            logger.info(f"UI warning: {notification.message}")

    # ---------- actions ----------
    def _on_new_project(self):
        name = sd.askstring("Nuevo proyecto", "Nombre:", parent=self)
        if not name or not name.strip():
            return

        async def create():
            project = await self.controller.create_project(name.strip())
            if project is not None:
                self._add_tab(project)
        spawn(create())

    def _on_rename_project(self):
        tab = self.current_tab()
        if tab is None:
            return
        name = sd.askstring("Renombrar proyecto", "Nombre:", initialvalue=tab.project.name, parent=self)
        if not name or not name.strip() or name.strip() == tab.project.name:
            return

        async def rename():
            project = await self.controller.rename_project(tab.project.id, name.strip())
            if project is not None:
                tab.project = project
                self.nb.tab(tab, text=project.name or "Proyecto")
        spawn(rename())

    def _on_summarize_project(self):
        tab = self.current_tab()
        if tab is None:
            return
        self.status_var.set("Resumiendo proyecto…")

        async def summarize():
            summary = await self.controller.summarize_project(tab.project.id)
            if summary:
                self.status_var.set("Listo")
                mb.showinfo(f"Resumen · {tab.project.name}", summary)
        spawn(summarize())

    def _on_close(self):
        self.alive = False


class ProjectTab(ttk.Frame):
    def __init__(self, parent, controller: AppController, project: Project):
        super().__init__(parent)
        self.controller = controller
        self.project = project
        self.board = controller.board(project.id)
        self.adapter = controller.drag_adapter(project.id)

        # Header: quick add
        header = ttk.Frame(self)
        header.pack(fill="x", pady=(6, 4))
        ttk.Label(header, text="Nueva tarea:").pack(side="left")
        self.entry = ttk.Entry(header)
        self.entry.pack(side="left", fill="x", expand=True, padx=6)
        self.entry.bind("<Return>", self._on_add)
        ttk.Button(header, text="Agregar", command=self._on_add).pack(side="left")

        self.view = BoardView(self, on_drag_end=self.adapter.on_drag_end, on_menu=self._on_menu_cb,
                               on_open=self._show_details)
        self.view.pack(fill="both", expand=True)

        # re-render en cada cambio del store
        self._unsubscribe = self.board.subscribe(lambda _board: self.render())
        self.bind("<Destroy>", self._on_destroy, add="+")

    # ---------- data ----------
    async def load(self):
        try:
            await self.board.load()
        except BoardError as e:
            mb.showerror(self.project.name, f"No se pudieron cargar tareas: {e}")
        self.render()

    def render(self):
        self.view.set_columns(self.board.current_columns())

    # ---------- callbacks desde el widget ----------
    def _on_menu_cb(self, task_id: str):
        menu = tk.Menu(self, tearoff=False)
        menu.add_command(label="Editar", command=lambda: self._edit_task(task_id))
        menu.add_command(label="Eliminar", command=lambda: self._delete_task(task_id))
        menu.add_command(label="Resumen IA", command=lambda: self._summarize_task(task_id))
        menu.add_command(label="Preguntar IA", command=lambda: self._ask_task(task_id))
        try:
            menu.tk_popup(self.winfo_pointerx(), self.winfo_pointery())
        finally:
            menu.grab_release()

    # ---------- header actions ----------
    def _on_add(self, event=None):
        text = self.entry.get().strip()
        if not text:
            return
        self.entry.delete(0, "end")
        spawn(self.board.create_task(text))

    # ---------- helpers ----------
    def _edit_task(self, task_id: str):
        task = self.board.store.get(task_id)
        if task is None:
            return
        title = sd.askstring("Editar", "Título:", initialvalue=task.title, parent=self)
        if title and title.strip() and title.strip() != task.title:
            spawn(self.board.update_task(task_id, title=title.strip()))

    def _delete_task(self, task_id: str):
        if mb.askyesno("Eliminar", "¿Eliminar esta tarea?", parent=self):
            spawn(self.board.delete_task(task_id))

    def _summarize_task(self, task_id: str):
        task = self.board.store.get(task_id)

        async def summarize():
            summary = await self.controller.summarize_task(task_id)
            if summary:
                mb.showinfo(f"Resumen · {task.title if task else task_id}", summary)
        spawn(summarize())

    def _ask_task(self, task_id: str):
        question = sd.askstring("Preguntar IA", "Pregunta:", parent=self)
        if not question or not question.strip():
            return

        async def ask():
            answer = await self.controller.ask_about_task(task_id, question)
            if answer:
                mb.showinfo("Respuesta IA", answer)
        spawn(ask())

    def _show_details(self, task_id: str):
        task = self.board.store.get(task_id)
        if task is None:
            return

        async def details():
            # el resumen automático solo se pide la primera vez en la sesión
            summary = await self.controller.summarize_task(task_id, auto=True)
            text = task.description or "(sin descripción)"
            if summary:
                text += f"\n\nResumen IA:\n{summary}"
            mb.showinfo(task.title, text)
        spawn(details())

    def _on_destroy(self, event):
        if event.widget is self:
            self._unsubscribe()
