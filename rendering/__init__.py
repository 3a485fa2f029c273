"""Rendering and display modules."""

from .screensaver_window import ScreensaverWindow
from .window_host import QtWindowHost

__all__ = ['ScreensaverWindow', 'QtWindowHost']
