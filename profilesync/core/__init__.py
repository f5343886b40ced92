# profilesync/core/__init__.py
"""
Profile Sync Core Module
Central location for shared constants and application state
"""

from profilesync import __version__, __description__, __author__

from profilesync.core.app_state import AppState, get_start_time

__all__ = [
    "__version__",
    "__description__",
    "__author__",
    "AppState",
    "get_start_time"
]
