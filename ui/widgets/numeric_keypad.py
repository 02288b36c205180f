from kivy.metrics import dp
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton, MDIconButton, MDRaisedButton
from kivymd.uix.gridlayout import MDGridLayout
from kivymd.uix.label import MDLabel

from backend.models import FieldKind

KEYS = ["1", "2", "3", "4", "5", "6", "7", "8", "9", ".", "0", "<"]


class NumericKeypad(MDBoxLayout):
    """Bottom keypad bound to the focused weight or reps field.

    ``on_change`` is called after every edit so the screen can redraw the
    affected row.
    """

    def __init__(self, session, on_change=None, **kwargs):
        super().__init__(
            orientation="vertical",
            size_hint_y=None,
            height=dp(260),
            padding=dp(8),
            spacing=dp(4),
            **kwargs,
        )
        self.session = session
        self.on_change = on_change

        header = MDBoxLayout(size_hint_y=None, height=dp(48), spacing=dp(4))
        header.add_widget(MDIconButton(icon="minus", on_release=lambda *_: self._edit(self.session.surface.decrement)))
        self.field_label = MDLabel(halign="center")
        header.add_widget(self.field_label)
        header.add_widget(MDIconButton(icon="plus", on_release=lambda *_: self._edit(self.session.surface.increment)))
        self.add_widget(header)

        grid = MDGridLayout(cols=3, spacing=dp(4))
        for key in KEYS:
            grid.add_widget(
                MDFlatButton(
                    text=key,
                    size_hint=(1, 1),
                    on_release=lambda _btn, k=key: self.press(k),
                )
            )
        self.add_widget(grid)
        self.add_widget(
            MDRaisedButton(
                text="Next",
                size_hint_x=1,
                on_release=lambda *_: self._edit(self.session.surface.next_field),
            )
        )
        self.refresh()

    def press(self, key: str) -> None:
        surface = self.session.surface
        if key == "<":
            self._edit(surface.backspace)
        else:
            self._edit(lambda: surface.type_character(key))

    def _edit(self, action) -> None:
        action()
        self.refresh()
        if self.on_change:
            self.on_change()

    def refresh(self) -> None:
        target = self.session.surface.focus
        if target is None:
            self.field_label.text = ""
            return
        name = "Weight" if target.field is FieldKind.WEIGHT else "Reps"
        self.field_label.text = f"{name}: {self.session.surface.focused_text()}"
