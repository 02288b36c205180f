"""KivyMD presentation layer for the workout app."""
