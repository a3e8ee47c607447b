"""
Trellis routing.
"""

from .route import Route, RouteMatch, ControllerTarget, DYNAMIC, compile_path, split_pattern
from .router import Router

__all__ = [
    "Router",
    "Route",
    "RouteMatch",
    "ControllerTarget",
    "DYNAMIC",
    "compile_path",
    "split_pattern",
]
