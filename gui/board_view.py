"""
Three-column Kanban board widget for Tkinter
--------------------------------------------
Renders one column per status, each a scrollable Canvas + interior Frame
holding one TaskCard per task, in the order given by the controller.

Integration notes (MVC-friendly):
- The widget is view-only state. It never reorders anything itself: the
  columns always come from ``set_columns()`` (the store's projection).
- Dragging a card and releasing it reports a DragResult through
  ``on_drag_end``; releasing outside every column reports no destination.
- Use ``on_menu`` for the card's "⋮" button and ``on_open`` for a double-click.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional
import tkinter as tk
from tkinter import ttk

from core.models import STATUSES, Task
from controller.drag_adapter import DragResult

DRAG_THRESHOLD_PX = 5
STATUS_COLORS = {"TODO": "#CBD5E1", "IN_PROGRESS": "#F59E0B", "DONE": "#10B981"}


class TaskCard(ttk.Frame):
    """A single card: title, optional description and a menu button."""
    def __init__(self, master, task: Task, index: int, board: "BoardView", wrap: int = 260):
        super().__init__(master, padding=(6, 4), relief="groove", borderwidth=1)
        self.task = task
        self.index = index
        self.columnconfigure(0, weight=1)

        self.lbl = ttk.Label(self, text=task.title, wraplength=wrap, anchor="w", justify="left",
                             style="Card.Title.TLabel")
        self.lbl.grid(row=0, column=0, sticky="we")
        if task.description:
            self.desc = ttk.Label(self, text=task.description, wraplength=wrap, anchor="w",
                                  justify="left", style="Card.Desc.TLabel")
            self.desc.grid(row=1, column=0, sticky="we", pady=(2, 0))

        self.menu_btn = ttk.Button(self, text="⋮", width=2, command=lambda: board.open_menu(task.id))
        self.menu_btn.grid(row=0, column=1, padx=(6, 0), sticky="ne")

        for widget in (self, self.lbl) + ((self.desc,) if task.description else ()):
            widget.bind("<ButtonPress-1>", lambda e: board.start_drag(self, e), add="+")
            widget.bind("<B1-Motion>", board.drag_motion, add="+")
            widget.bind("<ButtonRelease-1>", board.end_drag, add="+")
            widget.bind("<Double-Button-1>", lambda e: board.open_details(task.id), add="+")


class ColumnFrame(ttk.Frame):
    """Canvas + interior Frame pattern with a header showing label and count."""
    def __init__(self, master, status: str, label: str, **kwargs):
        super().__init__(master, padding=4, **kwargs)
        self.status = status
        self.cards: List[TaskCard] = []

        header = ttk.Frame(self)
        header.grid(row=0, column=0, columnspan=2, sticky="we", pady=(0, 4))
        color = STATUS_COLORS.get(status, "#CBD5E1")
        tk.Label(header, text=label, bg=color, fg=header_text_color(color), padx=6, pady=2).pack(side="left")
        self.count_var = tk.StringVar(value="0")
        ttk.Label(header, textvariable=self.count_var).pack(side="right")

        self.canvas = tk.Canvas(self, highlightthickness=0)
        self.vbar = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=self.vbar.set)
        self.canvas.grid(row=1, column=0, sticky="nsew")
        self.vbar.grid(row=1, column=1, sticky="ns")
        self.rowconfigure(1, weight=1)
        self.columnconfigure(0, weight=1)

        self.interior = ttk.Frame(self.canvas)
        self.interior.columnconfigure(0, weight=1)
        self._win_id = self.canvas.create_window(0, 0, window=self.interior, anchor="nw")
        self.interior.bind("<Configure>", lambda _: self._update_scrollregion())
        self.canvas.bind("<Configure>", self._on_canvas_configure)

    def set_tasks(self, tasks: List[Task], board: "BoardView"):
        for card in self.cards:
            card.destroy()
        self.cards = []
        for index, task in enumerate(tasks):
            card = TaskCard(self.interior, task, index, board)
            card.grid(row=index, column=0, sticky="we", padx=4, pady=3)
            self.cards.append(card)
        self.count_var.set(str(len(tasks)))
        self._update_scrollregion()

    def contains(self, x_root: int, y_root: int) -> bool:
        x, y = self.winfo_rootx(), self.winfo_rooty()
        return x <= x_root < x + self.winfo_width() and y <= y_root < y + self.winfo_height()

    def drop_index(self, y_root: int, dragged_id: str) -> int:
        """Position among the other cards of this column for a drop at ``y_root``."""
        index = 0
        for card in self.cards:
            if card.task.id == dragged_id:
                continue
            if y_root > card.winfo_rooty() + card.winfo_height() / 2:
                index += 1
        return index

    def _update_scrollregion(self):
        self.canvas.configure(scrollregion=self.canvas.bbox("all"))

    def _on_canvas_configure(self, event):
        # Keep interior width synced to canvas for wrapping
        self.canvas.itemconfigure(self._win_id, width=event.width)
        for card in self.cards:
            card.lbl.configure(wraplength=max(event.width - 60, 80))


class BoardView(ttk.Frame):
    def __init__(
        self,
        master,
        on_drag_end: Optional[Callable[[DragResult], None]] = None,
        on_menu: Optional[Callable[[str], None]] = None,
        on_open: Optional[Callable[[str], None]] = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._on_drag_end = on_drag_end
        self._on_menu = on_menu
        self._on_open = on_open
        self._drag: Optional[Dict] = None

        style = ttk.Style(self)
        style.configure("Card.Title.TLabel")
        style.configure("Card.Desc.TLabel", foreground="#666666")

        self.columns: Dict[str, ColumnFrame] = {}
        for i, (status, label) in enumerate(STATUSES):
            col = ColumnFrame(self, status, label)
            col.grid(row=0, column=i, sticky="nsew", padx=4)
            self.columnconfigure(i, weight=1, uniform="col")
            self.columns[status] = col
        self.rowconfigure(0, weight=1)

    # --- Public API ---
    def set_columns(self, columns: Dict[str, List[Task]]):
        """Render the projection {status: [tasks by order]}."""
        for status, col in self.columns.items():
            col.set_tasks(columns.get(status, []), self)

    def open_menu(self, task_id: str):
        if self._on_menu:
            self._on_menu(task_id)

    def open_details(self, task_id: str):
        self._drag = None
        if self._on_open:
            self._on_open(task_id)

    # --- Drag handling ---
    def start_drag(self, card: TaskCard, event):
        self._drag = {
            "task_id": card.task.id,
            "status": card.task.status,
            "index": card.index,
            "x": event.x_root,
            "y": event.y_root,
            "moved": False,
        }

    def drag_motion(self, event):
        if not self._drag:
            return
        if abs(event.x_root - self._drag["x"]) + abs(event.y_root - self._drag["y"]) >= DRAG_THRESHOLD_PX:
            if not self._drag["moved"]:
                self.configure(cursor="fleur")
            self._drag["moved"] = True

    def end_drag(self, event):
        drag, self._drag = self._drag, None
        self.configure(cursor="")
        if not drag or not drag["moved"]:
            return
        dest_status = dest_index = None
        for status, col in self.columns.items():
            if col.contains(event.x_root, event.y_root):
                dest_status = status
                dest_index = col.drop_index(event.y_root, drag["task_id"])
                break
        result = DragResult(
            task_id=drag["task_id"],
            source_status=drag["status"],
            source_index=drag["index"],
            destination_status=dest_status,
            destination_index=dest_index,
        )
        if self._on_drag_end:
            # diferido: el re-render destruye la tarjeta que recibió el evento
            self.after_idle(lambda: self._on_drag_end(result))


def header_text_color(background: str) -> str:
    """Black on light headers, white on dark ones (``#rgb`` or ``#rrggbb``)."""
    digits = background.strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        return "black"
    try:
        red, green, blue = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return "black"
    return "black" if 0.299 * red + 0.587 * green + 0.114 * blue > 186 else "white"
