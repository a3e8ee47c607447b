"""
Trellis views - page/layout composition.
"""

from .view import View, CONTENT_KEY
from .stack import ViewStack, CancelToken
from .factory import ViewStackFactory
from .helpers import DEFAULT_HELPERS

__all__ = [
    "View",
    "CONTENT_KEY",
    "ViewStack",
    "CancelToken",
    "ViewStackFactory",
    "DEFAULT_HELPERS",
]
