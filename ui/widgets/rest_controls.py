from kivy.metrics import dp
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton, MDRaisedButton
from kivymd.uix.label import MDLabel
from kivymd.uix.progressbar import MDProgressBar

ADJUSTMENTS = (-30, -10, -5, 5, 10, 30)


class RestControls(MDBoxLayout):
    """Countdown display with pause, skip and time adjustment buttons."""

    def __init__(self, session, on_change=None, **kwargs):
        super().__init__(
            orientation="vertical",
            size_hint_y=None,
            height=dp(170),
            padding=dp(8),
            spacing=dp(4),
            **kwargs,
        )
        self.session = session
        self.on_change = on_change

        self.time_label = MDLabel(halign="center", font_style="H4")
        self.add_widget(self.time_label)
        self.progress = MDProgressBar(max=1, value=0)
        self.add_widget(self.progress)

        row = MDBoxLayout(size_hint_y=None, height=dp(40), spacing=dp(2))
        for seconds in ADJUSTMENTS:
            label = f"+{seconds}" if seconds > 0 else str(seconds)
            row.add_widget(
                MDFlatButton(
                    text=label,
                    on_release=lambda _btn, s=seconds: self._act(lambda: self.session.rest_timer.adjust(s)),
                )
            )
        self.add_widget(row)

        actions = MDBoxLayout(size_hint_y=None, height=dp(48), spacing=dp(8))
        self.pause_button = MDRaisedButton(
            text="Pause", on_release=lambda *_: self._act(self.session.rest_timer.toggle_pause)
        )
        actions.add_widget(self.pause_button)
        actions.add_widget(
            MDRaisedButton(text="Skip", on_release=lambda *_: self._act(self.session.rest_timer.skip))
        )
        self.keypad_button = MDFlatButton(
            text="Keypad",
            on_release=lambda *_: self._act(self.session.surface.switch_to_numeric_surface),
        )
        actions.add_widget(self.keypad_button)
        self.add_widget(actions)
        self.refresh()

    def _act(self, action) -> None:
        action()
        self.refresh()
        if self.on_change:
            self.on_change()

    def refresh(self) -> None:
        timer = self.session.rest_timer
        self.time_label.text = timer.formatted_remaining
        self.progress.value = timer.progress
        self.pause_button.text = "Resume" if timer.paused else "Pause"
