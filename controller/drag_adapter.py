from dataclasses import dataclass
from typing import Optional

from controller.board_controller import BoardController, PendingMove


@dataclass(frozen=True)
class DragResult:
    """Terminal drag gesture as reported by the board view."""
    task_id: str
    source_status: str
    source_index: int
    destination_status: Optional[str] = None
    destination_index: Optional[int] = None


class DragAdapter:
    """Turns a finished drag into one move command. Holds no state of its own."""

    def __init__(self, controller: BoardController):
        self.controller = controller

    def on_drag_end(self, result: DragResult) -> Optional[PendingMove]:
        # soltado fuera de cualquier columna o gesto cancelado
        if result.destination_status is None or result.destination_index is None:
            return None
        return self.controller.submit_move(
            result.task_id, result.destination_status, result.destination_index
        )
