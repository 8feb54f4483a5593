"""
Build-scoped observability context.

Records which factory build is in progress so log records emitted while
resolving fields can be tagged with the factory name and sequence number.
Uses ``contextvars`` so concurrent builds on one event loop stay separate.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BuildTrace:
    """Identity of the build currently running."""

    factory_name: str
    factory_id: str
    seq: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"{self.factory_name}#{self.seq}"


_current_trace: ContextVar[Optional[BuildTrace]] = ContextVar(
    "fieldforge_build_trace", default=None
)


def get_build_trace() -> Optional[BuildTrace]:
    """
    Get the trace of the build in progress.

    Returns
    -------
    BuildTrace or None
        Current trace if called during a build
    """
    return _current_trace.get()


def clear_build_trace() -> None:
    _current_trace.set(None)


class BuildTraceScope:
    """
    Context manager installing a BuildTrace for the duration of a build.

    Restores whatever trace was active before, so nested builds of other
    factories report their own identity and hand back the outer one.
    """

    def __init__(self, trace: BuildTrace):
        self.trace = trace
        self._token: Optional[Token] = None

    def __enter__(self) -> BuildTrace:
        self._token = _current_trace.set(self.trace)
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _current_trace.reset(self._token)
            self._token = None
