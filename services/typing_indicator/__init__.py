"""
Typing Indicator Service Package

This package tracks which channel members are currently typing and expires
that status after an idle window.
"""

from .app.core.typing_tracker import OTHER_LONG_TYPING_MS, TypingTracker

__all__ = ["OTHER_LONG_TYPING_MS", "TypingTracker"]
