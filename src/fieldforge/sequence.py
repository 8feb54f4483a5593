"""
Process-wide sequence counters.

Each factory definition owns one counter in the registry, keyed by its
identity. Counters start at 0, advance by one per build and survive until
reset.
"""

import threading
from typing import Dict, Optional

from fieldforge.observability import get_logger

logger = get_logger(__name__)


class SequenceRegistry:
    """Table of per-factory monotonic counters."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next(self, factory_id: str) -> int:
        """
        Return the next sequence number for ``factory_id``.

        The first call for an unknown factory yields 0.
        """
        with self._lock:
            seq = self._counters.get(factory_id, 0)
            self._counters[factory_id] = seq + 1
        logger.debug(f"Allocated sequence {seq} for factory {factory_id}")
        return seq

    def peek(self, factory_id: str) -> int:
        """Return the number the next ``next`` call would yield."""
        with self._lock:
            return self._counters.get(factory_id, 0)

    def reset(self, factory_id: str) -> None:
        with self._lock:
            self._counters[factory_id] = 0
        logger.info(f"Sequence reset for factory {factory_id}")

    def reset_all(self) -> None:
        with self._lock:
            for factory_id in self._counters:
                self._counters[factory_id] = 0
            count = len(self._counters)
        logger.info(f"Reset {count} factory sequences")


# Global registry instance
_global_registry: Optional[SequenceRegistry] = None
_global_registry_lock = threading.Lock()


def get_sequence_registry() -> SequenceRegistry:
    """
    Get the global sequence registry instance.

    Returns
    -------
    SequenceRegistry
        Registry shared by every factory in the process
    """
    global _global_registry
    if _global_registry is None:
        with _global_registry_lock:
            if _global_registry is None:
                _global_registry = SequenceRegistry()
    return _global_registry


def reset_all_sequence() -> None:
    """Reset the sequence counter of every defined factory to 0."""
    get_sequence_registry().reset_all()
