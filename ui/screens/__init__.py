"""UI screen modules for the workout app."""

from .general import HomeScreen
from .session import ActiveSessionScreen

__all__ = ["ActiveSessionScreen", "HomeScreen"]
