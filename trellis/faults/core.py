"""
Trellis faults - core types.

Defines:
- Fault base class (structured, typed framework errors)
- FaultDomain (functional area a fault belongs to)
- Severity levels
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level used when a fault reaches the top-level
    handler.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


# Standard Domains
FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.DI = FaultDomain("di", "Dependency injection errors")
FaultDomain.ROUTING = FaultDomain("routing", "Route matching and controller lookup")
FaultDomain.VIEW = FaultDomain("view", "View stack rendering")
FaultDomain.FLOW = FaultDomain("flow", "Request/response flow")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: {"severity": Severity.FATAL, "status": 500},
    FaultDomain.DI: {"severity": Severity.ERROR, "status": 500},
    FaultDomain.ROUTING: {"severity": Severity.INFO, "status": 404},
    FaultDomain.VIEW: {"severity": Severity.ERROR, "status": 500},
    FaultDomain.FLOW: {"severity": Severity.ERROR, "status": 500},
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault carries:
    - Stable machine-readable code
    - Human-readable message
    - Severity level
    - Domain classification
    - HTTP status the top-level handler answers with
    - Public exposure control

    Attributes:
        code: Stable machine-readable identifier (e.g., "UNKNOWN_SERVICE")
        message: Human-readable summary
        domain: Fault domain
        severity: Fault severity
        status: HTTP status code for the failed request
        public: Whether the message is safe to expose to clients
        metadata: Additional context data

    Example:
        ```python
        raise Fault(
            code="QUOTA_EXCEEDED",
            message="Upload quota exceeded",
            domain=FaultDomain.FLOW,
            status=413,
            public=True,
        )
        ```
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        status: Optional[int] = None,
        public: bool = False,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        defaults = DOMAIN_DEFAULTS.get(self.domain, {"severity": Severity.ERROR, "status": 500})
        self.severity = severity or defaults["severity"]
        self.status = status if status is not None else defaults["status"]
        self.public = public
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"Fault(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value}, status={self.status})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize fault to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "status": self.status,
            "public": self.public,
            "metadata": self.metadata,
        }
