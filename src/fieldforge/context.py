"""
Per-build resolution state.

A BuildContext lives for exactly one ``build`` (or one element of
``build_list``): it snapshots the sequence number, holds the effective field
specs and memoizes every field outcome. It also tracks which in-progress
field is waiting on which, so a ``get`` that would close a cycle is
rejected before anything awaits.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from fieldforge.definition import FactoryDefinition
from fieldforge.field_spec import FieldSpec


class ResolutionState(Enum):
    """Lifecycle of a field inside one build."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class CacheEntry:
    """Memoized outcome of one field."""

    state: ResolutionState = ResolutionState.PENDING
    value: Any = None
    error: Optional[BaseException] = None
    done: asyncio.Event = field(default_factory=asyncio.Event)

    def resolve(self, value: Any) -> None:
        self.state = ResolutionState.RESOLVED
        self.value = value
        self.done.set()

    def fail(self, error: BaseException) -> None:
        self.state = ResolutionState.FAILED
        self.error = error
        self.done.set()

    def outcome(self) -> Any:
        """Return the resolved value or re-raise the recorded failure."""
        if self.state is ResolutionState.FAILED and self.error is not None:
            raise self.error
        return self.value


@dataclass
class BuildContext:
    """State for a single build invocation."""

    definition: FactoryDefinition
    seq: int
    specs: Dict[str, FieldSpec]
    copy_literals: bool = True
    trace_resolution: bool = False
    cache: Dict[str, CacheEntry] = field(default_factory=dict)
    # requester field -> fields it is currently waiting on (with repeats)
    waiting_on: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def factory_name(self) -> str:
        return self.definition.name

    def in_progress(self) -> List[str]:
        return [
            name
            for name, entry in self.cache.items()
            if entry.state is ResolutionState.PENDING
        ]

    def add_edge(self, requester: Optional[str], target: str) -> None:
        if requester is not None:
            self.waiting_on.setdefault(requester, []).append(target)

    def remove_edge(self, requester: Optional[str], target: str) -> None:
        if requester is None:
            return
        targets = self.waiting_on.get(requester)
        if targets and target in targets:
            targets.remove(target)
            if not targets:
                del self.waiting_on[requester]

    def find_cycle(self, requester: str, target: str) -> Optional[List[str]]:
        """
        Return the cycle ``requester -> target`` would close, if any.

        The result starts and ends with ``target``: the field that is already
        in progress and would end up waiting on itself.
        """
        if requester == target:
            return [target, target]

        stack = [(target, [target])]
        visited = set()
        while stack:
            node, path = stack.pop()
            if node == requester:
                return path + [target]
            if node in visited:
                continue
            visited.add(node)
            for dependency in self.waiting_on.get(node, ()):
                stack.append((dependency, path + [dependency]))
        return None
