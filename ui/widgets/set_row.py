from kivy.metrics import dp
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton, MDIconButton
from kivymd.uix.label import MDLabel

from backend.models import FieldKind, SetRow

FOCUS_COLOR = (0.2, 0.5, 1, 0.25)
DONE_COLOR = (0.3, 0.8, 0.3, 0.25)


class SetRowWidget(MDBoxLayout):
    """One set: number, previous performance, weight, reps and checkmark."""

    def __init__(self, session, exercise_id: str, row: SetRow, on_change=None, **kwargs):
        super().__init__(size_hint_y=None, height=dp(44), spacing=dp(4), **kwargs)
        self.session = session
        self.exercise_id = exercise_id
        self.row = row
        self.on_change = on_change

        self.add_widget(MDLabel(text=str(row.number), size_hint_x=0.1, halign="center"))
        previous = (
            f"{row.weight_placeholder} x {row.reps_placeholder}"
            if row.weight_placeholder
            else "-"
        )
        self.add_widget(
            MDFlatButton(
                text=previous,
                size_hint_x=0.3,
                on_release=lambda *_: self._act(
                    lambda: self.session.fill_from_previous(exercise_id, row.set_id)
                ),
            )
        )
        self.weight_button = self._field_button(FieldKind.WEIGHT, row.weight, row.weight_placeholder)
        self.reps_button = self._field_button(FieldKind.REPS, row.reps, row.reps_placeholder)
        self.add_widget(self.weight_button)
        self.add_widget(self.reps_button)
        self.add_widget(
            MDIconButton(
                icon="check-circle" if row.completed else "checkbox-blank-circle-outline",
                on_release=lambda *_: self._act(
                    lambda: self.session.toggle_completion(exercise_id, row.set_id)
                ),
            )
        )
        if row.completed:
            self.md_bg_color = DONE_COLOR

    def _field_button(self, field: FieldKind, text: str, placeholder: str):
        focus = self.session.surface.focus
        focused = (
            focus is not None
            and focus.set_id == self.row.set_id
            and focus.field is field
        )
        button = MDFlatButton(
            text=text or placeholder or "-",
            size_hint_x=0.25,
            md_bg_color=FOCUS_COLOR if focused else (0, 0, 0, 0),
            on_release=lambda *_: self._act(
                lambda: self.session.request_focus(self.exercise_id, self.row.set_id, field)
            ),
        )
        if not text:
            button.theme_text_color = "Hint"
        return button

    def _act(self, action) -> None:
        action()
        if self.on_change:
            self.on_change()
