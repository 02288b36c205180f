"""Screens available outside an active workout."""

from .home_screen import HomeScreen

__all__ = ["HomeScreen"]
