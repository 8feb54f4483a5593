"""
On-demand field resolution.

Fields are evaluated the first time something touches them: either output
assembly walking the declared fields, or a resolver calling ``get``. Each
field is evaluated at most once per BuildContext; later requests receive
the memoized value or the memoized failure.
"""

import asyncio
import inspect
from typing import Any, Dict, Optional

from fieldforge.context import BuildContext, CacheEntry, ResolutionState
from fieldforge.exceptions import (
    CircularDependencyError,
    ConfigurationError,
    FieldForgeError,
    ResolverError,
)
from fieldforge.field_spec import FieldSpec, LazySpec, LiteralSpec, copy_owned_value
from fieldforge.observability import get_logger

logger = get_logger(__name__)


class ResolverContext:
    """
    View of the build handed to a lazy field resolver.

    Exposes the build's sequence number and ``get`` for reading other
    fields of the same object.
    """

    def __init__(self, build: BuildContext, field_name: str):
        self._build = build
        self.field_name = field_name

    @property
    def seq(self) -> int:
        return self._build.seq

    async def get(self, field_name: str) -> Any:
        """Resolve and return another field of the object being built."""
        return await resolve_field(self._build, field_name, requester=self.field_name)

    def __repr__(self) -> str:
        return f"ResolverContext(field={self.field_name!r}, seq={self.seq})"


async def resolve_field(
    ctx: BuildContext, field_name: str, requester: Optional[str] = None
) -> Any:
    """
    Return the value of ``field_name`` within ``ctx``.

    Parameters
    ----------
    ctx : BuildContext
        State of the build in progress
    field_name : str
        Declared output or transient field
    requester : str, optional
        Field whose resolver is asking; None for output assembly

    Raises
    ------
    ConfigurationError
        If ``field_name`` is not declared by the factory
    CircularDependencyError
        If waiting on ``field_name`` would make it wait on itself
    ResolverError
        If the field's resolver (or one it depends on) raised
    """
    if field_name not in ctx.specs:
        raise ConfigurationError(
            message=f"Undeclared field '{field_name}' requested via get()",
            factory_name=ctx.factory_name,
            field_name=field_name,
        )

    entry = ctx.cache.get(field_name)
    if entry is not None and entry.state is not ResolutionState.PENDING:
        return entry.outcome()

    if entry is not None and requester is not None:
        chain = ctx.find_cycle(requester, field_name)
        if chain is not None:
            raise CircularDependencyError(field_name, chain, ctx.factory_name)

    ctx.add_edge(requester, field_name)
    try:
        if entry is not None:
            # Being resolved by a sibling branch of the same build
            await entry.done.wait()
            return entry.outcome()
        return await _resolve_new(ctx, field_name)
    finally:
        ctx.remove_edge(requester, field_name)


async def _resolve_new(ctx: BuildContext, field_name: str) -> Any:
    entry = CacheEntry()
    ctx.cache[field_name] = entry

    try:
        value = await _evaluate(ctx, field_name, ctx.specs[field_name])
    except FieldForgeError as exc:
        entry.fail(exc)
        raise
    except asyncio.CancelledError as exc:
        entry.fail(exc)
        raise
    except Exception as exc:
        error = ResolverError(field_name, exc, ctx.factory_name, ctx.seq)
        entry.fail(error)
        logger.debug(f"Field '{field_name}' failed: {error.message}")
        raise error from exc

    entry.resolve(value)
    if ctx.trace_resolution:
        logger.debug(f"Resolved field '{field_name}'")
    return value


async def _evaluate(ctx: BuildContext, field_name: str, spec: FieldSpec) -> Any:
    if isinstance(spec, LiteralSpec):
        if spec.owned and ctx.copy_literals:
            return copy_owned_value(spec.value)
        return spec.value

    if isinstance(spec, LazySpec):
        result = spec.resolver(ResolverContext(ctx, field_name))
        if inspect.isawaitable(result):
            result = await result
        return result

    raise TypeError(f"Unsupported field spec for '{field_name}': {spec!r}")


async def assemble(ctx: BuildContext) -> Dict[str, Any]:
    """
    Resolve every output field and return the produced object.

    Fields are touched in declaration order; transient fields are only
    resolved when some resolver asks for them and never appear in the
    result.
    """
    for field_name in ctx.definition.field_names:
        await resolve_field(ctx, field_name)
    return {
        field_name: ctx.cache[field_name].value
        for field_name in ctx.definition.field_names
    }
