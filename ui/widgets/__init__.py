"""Reusable widgets for the active session screen."""

from .numeric_keypad import NumericKeypad
from .rest_controls import RestControls
from .set_row import SetRowWidget

__all__ = ["NumericKeypad", "RestControls", "SetRowWidget"]
