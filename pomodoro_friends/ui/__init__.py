from .main_window import MainWindow
from .styles import TOMATO_STYLESHEET

__all__ = ["MainWindow", "TOMATO_STYLESHEET"]
