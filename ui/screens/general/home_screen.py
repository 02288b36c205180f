import asyncio
import logging

from kivy.metrics import dp
from kivymd.app import MDApp
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton, MDRaisedButton
from kivymd.uix.dialog import MDDialog
from kivymd.uix.label import MDLabel
from kivymd.uix.screen import MDScreen

from backend.persistence import AuthenticationError, PersistenceError

DEFAULT_WORKOUT_NAME = "Workout"


class HomeScreen(MDScreen):
    """Primary screen offering to start or resume a workout."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        box = MDBoxLayout(orientation="vertical", padding=dp(24), spacing=dp(16))
        box.add_widget(MDLabel(text="Workout", font_style="H4", halign="center"))
        self.start_button = MDRaisedButton(
            text="Start Empty Workout",
            pos_hint={"center_x": 0.5},
            on_release=lambda *_: self.start_workout(),
        )
        box.add_widget(self.start_button)
        self.add_widget(box)

    def on_pre_enter(self, *args):
        app = MDApp.get_running_app()
        manager = getattr(app, "session_manager", None)
        active = manager is not None and manager.active is not None
        self.start_button.text = "Resume Workout" if active else "Start Empty Workout"
        return super().on_pre_enter(*args)

    def start_workout(self):
        app = MDApp.get_running_app()
        if app.session_manager.active is not None:
            self._open_session()
            return
        asyncio.ensure_future(self._start())

    async def _start(self):
        app = MDApp.get_running_app()
        try:
            session = await app.session_manager.start_session(DEFAULT_WORKOUT_NAME)
        except AuthenticationError:
            logging.exception("Cannot start workout")
            self._show_message("Could not start workout. User not found.")
            return
        except PersistenceError as exc:
            logging.exception("Cannot start workout")
            self._show_message(f"Failed to start workout: {exc}")
            return
        if session is not None:
            self._open_session()

    def _open_session(self):
        if self.manager:
            self.manager.current = "active_session"

    def _show_message(self, text: str):
        dialog = MDDialog(
            text=text,
            buttons=[MDFlatButton(text="OK", on_release=lambda *_: dialog.dismiss())],
        )
        dialog.open()
