import asyncio
import logging
import tkinter as tk
from core.config import BASE_URL, LOG_FORMAT, LOG_LEVEL, UI_TICK_SECONDS
from storage.board_api import BoardApiClient
from controller.app_controller import AppController
from gui.main_window import MainWindow

logger = logging.getLogger(__name__)


async def run(ui: MainWindow, controller: AppController):
    # tkinter se bombea desde el loop asyncio: un solo hilo para UI y reconciliación
    await ui.build_tabs()
    destroyed = False
    try:
        while ui.alive:
            ui.update()
            await asyncio.sleep(UI_TICK_SECONDS)
    except tk.TclError:
        destroyed = True
        logger.info("Window destroyed")
    finally:
        await controller.aclose()
    if not destroyed:
        ui.destroy()


def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    client = BoardApiClient(BASE_URL)
    controller = AppController(client)
    ui = MainWindow(controller)
    logger.info(f"Kanban client against {BASE_URL}")
    asyncio.run(run(ui, controller))


if __name__ == "__main__":
    main()
