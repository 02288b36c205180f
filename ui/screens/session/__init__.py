"""Screens used during an active workout session."""

from .active_session_screen import ActiveSessionScreen

__all__ = ["ActiveSessionScreen"]
