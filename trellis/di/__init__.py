"""
Trellis dependency injection.

- ``ServiceContainer``: lazy, name-keyed singleton registry
- ``Inject`` / ``include`` / ``depends``: constructor declarations
- ``base``: explicit base-class initialisation through the container
"""

from .container import (
    ServiceContainer,
    ServiceState,
    base,
)

from .declarations import (
    Dependency,
    DeclarationParser,
    Inject,
    include,
    depends,
)

__all__ = [
    "ServiceContainer",
    "ServiceState",
    "base",
    "Dependency",
    "DeclarationParser",
    "Inject",
    "include",
    "depends",
]
