"""Persistent settings (QSettings) and the async store facade."""

from .settings_manager import SettingsManager
from .store import SettingsStore

__all__ = ['SettingsManager', 'SettingsStore']
