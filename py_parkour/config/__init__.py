"""
Configuration modules for course generation.
"""

from .config import Settings, settings
from .themes import get_theme, list_themes, THEMES

__all__ = ['get_theme', 'list_themes', 'THEMES', 'settings', 'Settings']
