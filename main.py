import asyncio
import logging
import os
import sys

from kivy.clock import Clock
from kivy.core.window import Window
from kivy.uix.screenmanager import NoTransition, ScreenManager
from kivymd.app import MDApp

from backend import DEFAULT_DB_PATH, settings
from backend.persistence import SQLiteWorkoutStore, create_database
from backend.sessions import SessionManager
from ui.screens import ActiveSessionScreen, HomeScreen

if os.name == "nt" or sys.platform.startswith("win"):
    Window.size = (280, 280 * (20 / 9))


class WorkoutApp(MDApp):
    store: SQLiteWorkoutStore | None = None
    session_manager: SessionManager | None = None

    def build(self):
        create_database(DEFAULT_DB_PATH)
        self.store = SQLiteWorkoutStore(DEFAULT_DB_PATH, user_id=settings.get_value("user_id"))
        self.session_manager = SessionManager(
            self.store,
            clock=Clock,
            rest_duration=int(settings.get_value("rest_duration", 60)),
            toast_duration=float(settings.get_value("toast_seconds", 2.0)),
            increment_step=float(settings.get_value("increment_step", 1.0)),
        )
        manager = ScreenManager(transition=NoTransition())
        manager.add_widget(HomeScreen(name="home"))
        manager.add_widget(ActiveSessionScreen(name="active_session"))
        return manager


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(WorkoutApp().async_run(async_lib="asyncio"))
