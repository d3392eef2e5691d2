# shared/config/__init__.py
from . import settings
from .settings import Settings, get_settings

__all__ = ["settings", "Settings", "get_settings"]
