"""
Settings access layer.
"""

from .settings_manager import SettingsManager

__all__ = ['SettingsManager']
