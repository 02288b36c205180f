import asyncio
import logging

from kivy.clock import Clock
from kivy.metrics import dp
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.scrollview import ScrollView
from kivymd.app import MDApp
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton, MDIconButton, MDRaisedButton
from kivymd.uix.dialog import MDDialog
from kivymd.uix.label import MDLabel
from kivymd.uix.list import MDList, OneLineAvatarIconListItem, IRightBodyTouch
from kivymd.uix.screen import MDScreen
from kivymd.uix.selectioncontrol import MDCheckbox
from kivymd.uix.textfield import MDTextField

from backend.input_surface import NumericSurface, RestControlsSurface
from ui.widgets import NumericKeypad, RestControls, SetRowWidget


class RightCheckbox(IRightBodyTouch, MDCheckbox):
    pass


class ExerciseChoice(OneLineAvatarIconListItem):
    def __init__(self, exercise, **kwargs):
        super().__init__(text=exercise.name, **kwargs)
        self.exercise = exercise
        self.checkbox = RightCheckbox()
        self.add_widget(self.checkbox)


class ActiveSessionScreen(MDScreen):
    """Screen showing the workout in progress.

    The backend session is polled on a short interval; the exercise list is
    rebuilt only when the visible state actually changed.
    """

    workout_name = StringProperty("")
    elapsed_text = StringProperty("00:00:00")
    toast_visible = BooleanProperty(False)
    poll_interval = 0.2

    _event = None
    _signature = None
    _surface_kind = None
    _scroll_target = None
    rest_bar = None

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        root = MDBoxLayout(orientation="vertical")

        header = MDBoxLayout(size_hint_y=None, height=dp(56), padding=dp(4), spacing=dp(4))
        self.name_button = MDFlatButton(text="", on_release=lambda *_: self.show_rename_dialog())
        header.add_widget(self.name_button)
        self.elapsed_label = MDLabel(halign="center")
        header.add_widget(self.elapsed_label)
        header.add_widget(MDIconButton(icon="close", on_release=lambda *_: self.confirm_cancel()))
        header.add_widget(MDRaisedButton(text="Finish", on_release=lambda *_: self.confirm_finish()))
        root.add_widget(header)

        self.scroll = ScrollView()
        self.exercise_box = MDBoxLayout(
            orientation="vertical", adaptive_height=True, padding=dp(8), spacing=dp(8)
        )
        self.scroll.add_widget(self.exercise_box)
        root.add_widget(self.scroll)

        self.toast_label = MDLabel(
            text="Rest complete", halign="center", size_hint_y=None, height=0, opacity=0
        )
        root.add_widget(self.toast_label)

        self.bottom = MDBoxLayout(orientation="vertical", adaptive_height=True)
        root.add_widget(self.bottom)
        self.add_widget(root)
        self._set_widgets = {}

    @property
    def session(self):
        app = MDApp.get_running_app()
        manager = getattr(app, "session_manager", None)
        return manager.active if manager else None

    # ------------------------------------------------------------------
    # Screen lifecycle
    # ------------------------------------------------------------------

    def on_pre_enter(self, *args):
        session = self.session
        if session:
            session.open()
        self._signature = None
        self._surface_kind = None
        self.poll()
        if self._event is None:
            self._event = Clock.schedule_interval(self.poll, self.poll_interval)
        return super().on_pre_enter(*args)

    def on_leave(self, *args):
        if self._event:
            self._event.cancel()
            self._event = None
        session = self.session
        if session:
            session.close()
        return super().on_leave(*args)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def poll(self, *_args):
        session = self.session
        if session is None:
            return
        self.workout_name = session.name
        self.name_button.text = session.name
        self.elapsed_text = session.elapsed_text
        self.elapsed_label.text = session.elapsed_text
        self._update_toast(session.toast_visible)

        signature = self._build_signature(session)
        if signature != self._signature:
            self._signature = signature
            self.rebuild_list()
        if self.rest_bar is not None:
            self.rest_bar.text = self._rest_bar_text(session)
        self._update_bottom(session)
        if session.scroll_target != self._scroll_target:
            self._scroll_target = session.scroll_target
            widget = self._set_widgets.get(self._scroll_target)
            if widget is not None:
                Clock.schedule_once(lambda *_: self.scroll.scroll_to(widget), 0)

    @staticmethod
    def _build_signature(session):
        rows = tuple(
            (selection.id, tuple(session.set_rows(selection.id)))
            for selection in session.exercises
        )
        timer = session.rest_timer
        return rows, session.surface.focus, timer.set_id if timer.active else None

    def rebuild_list(self):
        session = self.session
        self.exercise_box.clear_widgets()
        self._set_widgets = {}
        self.rest_bar = None
        if session is None:
            return
        for selection in session.exercises:
            self.exercise_box.add_widget(
                MDLabel(text=selection.exercise.name, font_style="H6", adaptive_height=True)
            )
            for row in session.set_rows(selection.id):
                widget = SetRowWidget(session, selection.id, row, on_change=self.poll)
                self._set_widgets[row.set_id] = widget
                self.exercise_box.add_widget(widget)
                if session.rest_shown_after(selection.id, row.set_id):
                    self.rest_bar = MDFlatButton(
                        text=self._rest_bar_text(session),
                        pos_hint={"center_x": 0.5},
                        on_release=lambda *_: self.show_rest_controls(),
                    )
                    self.exercise_box.add_widget(self.rest_bar)
            self.exercise_box.add_widget(
                MDFlatButton(
                    text="+ Add Set",
                    on_release=lambda _btn, ex_id=selection.id: self._add_set(ex_id),
                )
            )
        self.exercise_box.add_widget(
            MDRaisedButton(text="Add Exercises", on_release=lambda *_: self.open_exercise_picker())
        )

    @staticmethod
    def _rest_bar_text(session) -> str:
        timer = session.rest_timer
        suffix = " (paused)" if timer.paused else ""
        return f"Rest {timer.formatted_remaining}{suffix}"

    def show_rest_controls(self):
        """Swap the bottom surface to the rest-timer controls."""
        session = self.session
        if session:
            session.surface.switch_to_rest_surface()
        self.poll()

    def _update_bottom(self, session):
        surface = session.surface.surface
        kind = type(surface)
        if kind is not self._surface_kind:
            self._surface_kind = kind
            self.bottom.clear_widgets()
            if isinstance(surface, NumericSurface):
                self.bottom.add_widget(NumericKeypad(session, on_change=self.poll))
            elif isinstance(surface, RestControlsSurface):
                self.bottom.add_widget(RestControls(session, on_change=self.poll))
        for child in self.bottom.children:
            child.refresh()

    def _update_toast(self, visible: bool):
        if visible == self.toast_visible:
            return
        self.toast_visible = visible
        self.toast_label.opacity = 1 if visible else 0
        self.toast_label.height = dp(32) if visible else 0

    def _add_set(self, exercise_id: str):
        session = self.session
        if session:
            session.add_set(exercise_id)
        self.poll()

    # ------------------------------------------------------------------
    # Dialogs
    # ------------------------------------------------------------------

    def show_rename_dialog(self):
        session = self.session
        if session is None:
            return
        field = MDTextField(text=session.name, hint_text="Workout name")

        def save(*_):
            session.rename(field.text)
            dialog.dismiss()
            self.poll()

        dialog = MDDialog(
            title="Rename Workout",
            type="custom",
            content_cls=field,
            buttons=[
                MDFlatButton(text="Cancel", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(text="Save", on_release=save),
            ],
        )
        dialog.open()

    def open_exercise_picker(self):
        asyncio.ensure_future(self._open_exercise_picker())

    async def _open_exercise_picker(self):
        app = MDApp.get_running_app()
        session = self.session
        if session is None:
            return
        try:
            exercises = await app.store.get_all_exercises()
        except Exception:
            logging.exception("Could not load exercise library")
            return
        choices = [ExerciseChoice(ex) for ex in exercises if ex.id not in session.sets]
        content = MDList()
        for choice in choices:
            content.add_widget(choice)
        scroll = ScrollView(size_hint_y=None, height=dp(320))
        scroll.add_widget(content)

        def add(*_):
            selected = [c.exercise for c in choices if c.checkbox.active]
            dialog.dismiss()
            if selected:
                asyncio.ensure_future(self._add_exercises(session, selected))

        dialog = MDDialog(
            title="Add Exercises",
            type="custom",
            content_cls=scroll,
            buttons=[
                MDFlatButton(text="Cancel", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(text="Add", on_release=add),
            ],
        )
        dialog.open()

    async def _add_exercises(self, session, exercises):
        await session.add_exercises(exercises)
        self.poll()

    def confirm_finish(self):
        session = self.session
        if session is None or session.is_finishing:
            return
        dialog = MDDialog(
            text="Finish this workout?",
            buttons=[
                MDFlatButton(text="Cancel", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(
                    text="Finish",
                    on_release=lambda *_: (dialog.dismiss(), asyncio.ensure_future(self._finish())),
                ),
            ],
        )
        dialog.open()

    async def _finish(self):
        app = MDApp.get_running_app()
        session = self.session
        if session is None:
            return
        if not await app.session_manager.finish_active():
            if session.finish_error:
                self._show_message("Error", session.finish_error)
            return
        if session.show_save_as_routine_prompt:
            self._show_routine_prompt(session)
        else:
            self._go_home()

    def _show_routine_prompt(self, session):
        draft = session.build_routine_draft()
        lines = [f"{exercise.name}: {len(sets)} sets" for exercise, sets in draft.exercises]

        def close(*_):
            session.dismiss_save_as_routine_prompt()
            dialog.dismiss()
            self._go_home()

        dialog = MDDialog(
            title=f"Save as routine \"{draft.name}\"?",
            text="\n".join(lines),
            buttons=[
                MDFlatButton(text="Not now", on_release=close),
                MDRaisedButton(text="OK", on_release=close),
            ],
        )
        dialog.open()

    def confirm_cancel(self):
        session = self.session
        if session is None or not session.can_cancel:
            return
        dialog = MDDialog(
            text="Discard this workout? Nothing will be saved.",
            buttons=[
                MDFlatButton(text="Keep", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(
                    text="Discard",
                    on_release=lambda *_: (dialog.dismiss(), asyncio.ensure_future(self._cancel())),
                ),
            ],
        )
        dialog.open()

    async def _cancel(self):
        app = MDApp.get_running_app()
        session = self.session
        if session is None or not session.can_cancel:
            return
        self._go_home()
        await app.session_manager.cancel_active()

    def _show_message(self, title: str, text: str):
        dialog = MDDialog(
            title=title,
            text=text,
            buttons=[MDFlatButton(text="OK", on_release=lambda *_: dialog.dismiss())],
        )
        dialog.open()

    def _go_home(self):
        if self.manager:
            self.manager.current = "home"
