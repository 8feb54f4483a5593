"""
Exception hierarchy for fieldforge.

Every error raised by the factory engine derives from FieldForgeError, which
carries structured trace metadata (error code, severity, context and the
underlying cause) so failures can be logged or serialized consistently.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class ErrorSeverity(Enum):
    """Severity levels for fieldforge errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FieldForgeError(Exception):
    """
    Base exception for all fieldforge errors.

    Parameters
    ----------
    message : str
        Human-readable error description
    error_code : str
        Stable machine-readable identifier
    severity : ErrorSeverity, optional
        How serious the failure is
    context : dict, optional
        Additional structured data; copied, never mutated
    cause : Exception, optional
        The exception that triggered this one
    """

    def __init__(
        self,
        message: str,
        error_code: str = "fieldforge_error",
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        self.context: Dict[str, Any] = dict(context) if context else {}
        self.context.update(
            {
                "error_code": error_code,
                "severity": severity.value,
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def get_user_message(self) -> str:
        return f"❌ {self.message}"

    def __str__(self) -> str:
        return self.message


class ConfigurationError(FieldForgeError):
    """
    Raised when a factory is defined or used with names it does not declare.

    Covers undeclared fields in defaults, traits, overrides and ``get`` calls,
    missing defaults for output fields, and unknown trait names.
    """

    def __init__(
        self,
        message: str,
        factory_name: str,
        field_name: Optional[str] = None,
        trait_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.factory_name = factory_name
        self.field_name = field_name
        self.trait_name = trait_name

        config_context = dict(context) if context else {}
        config_context.update(
            {
                "factory_name": factory_name,
                "field_name": field_name,
                "trait_name": trait_name,
            }
        )
        super().__init__(
            message=message,
            error_code="config_error",
            severity=ErrorSeverity.HIGH,
            context=config_context,
            cause=cause,
        )

    def get_user_message(self) -> str:
        return f"❌ Factory '{self.factory_name}' is misconfigured: {self.message}"


class CircularDependencyError(FieldForgeError):
    """
    Raised when resolving a field would wait on itself.

    ``chain`` lists the fields forming the cycle, starting and ending with
    ``field_name``.
    """

    def __init__(
        self,
        field_name: str,
        chain: Sequence[str],
        factory_name: str = "Factory",
    ) -> None:
        self.field_name = field_name
        self.chain: List[str] = list(chain)
        self.factory_name = factory_name
        super().__init__(
            message=(
                f"Circular dependency on field '{field_name}' in {factory_name}: "
                + " -> ".join(self.chain)
            ),
            error_code="circular_dependency",
            severity=ErrorSeverity.HIGH,
            context={
                "factory_name": factory_name,
                "field_name": field_name,
                "chain": self.chain,
            },
        )


class ResolverError(FieldForgeError):
    """Raised when a field resolver raises; wraps the original exception."""

    def __init__(
        self,
        field_name: str,
        cause: BaseException,
        factory_name: str = "Factory",
        seq: Optional[int] = None,
    ) -> None:
        self.field_name = field_name
        self.factory_name = factory_name
        self.seq = seq
        super().__init__(
            message=(
                f"Resolver for field '{field_name}' in {factory_name} failed: "
                f"{type(cause).__name__}: {cause}"
            ),
            error_code="resolver_failed",
            severity=ErrorSeverity.MEDIUM,
            context={
                "factory_name": factory_name,
                "field_name": field_name,
                "seq": seq,
            },
            cause=cause,
        )
