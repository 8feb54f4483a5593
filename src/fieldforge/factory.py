"""
Factory handles: the public entry point for building fixture objects.

Usage::

    BookFactory = define_factory(
        ["id", "title", "author"],
        {
            "id": lazy(lambda ctx: f"Book-{ctx.seq}"),
            "title": "Yuyushiki",
            "author": None,
        },
        traits={"sequel": {"default_fields": {"title": "Yuyushiki 2"}}},
        name="Book",
    )

    book = await BookFactory.build(title="Yuyushiki 100")
    sequels = await BookFactory.use("sequel").build_list(3)
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from fieldforge.config import get_config
from fieldforge.context import BuildContext
from fieldforge.definition import FactoryDefinition, parse_define_options
from fieldforge.observability import BuildTrace, BuildTraceScope, get_logger
from fieldforge.resolver import assemble
from fieldforge.sequence import get_sequence_registry
from fieldforge.traits import TraitStack

logger = get_logger(__name__)


class FactoryInterface:
    """
    Handle for building objects from one FactoryDefinition.

    Handles are cheap and immutable: ``use`` returns a new handle carrying
    an extended trait selection while the definition and its sequence
    counter stay shared.
    """

    def __init__(
        self,
        definition: FactoryDefinition,
        trait_stack: Optional[TraitStack] = None,
    ) -> None:
        self._definition = definition
        self._traits = trait_stack or TraitStack(definition)

    @property
    def definition(self) -> FactoryDefinition:
        return self._definition

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def field_names(self) -> Tuple[str, ...]:
        return self._definition.field_names

    @property
    def transient_field_names(self) -> Tuple[str, ...]:
        return self._definition.transient_field_names

    @property
    def selected_traits(self) -> Tuple[str, ...]:
        return self._traits.selected

    def use(self, trait_name: str) -> "FactoryInterface":
        """
        Return a handle that applies ``trait_name`` on top of this one's traits.

        Raises
        ------
        ConfigurationError
            If the factory declares no such trait
        """
        return FactoryInterface(self._definition, self._traits.push(trait_name))

    async def build(
        self, overrides: Optional[Mapping[str, Any]] = None, /, **fields: Any
    ) -> Dict[str, Any]:
        """
        Build one object.

        Parameters
        ----------
        overrides : Mapping, optional
            Field values or lazy specs taking precedence over traits and
            defaults; use it for names that are not valid identifiers. The
            mapping is positional only: ``build({"a-b": 1})``, whereas
            ``build(overrides={...})`` names a field called ``overrides``
        **fields
            Same as ``overrides``, given as keyword arguments

        Returns
        -------
        dict
            Output fields in declaration order

        Raises
        ------
        ConfigurationError
            If an override names an undeclared field
        CircularDependencyError
            If resolvers depend on each other in a cycle
        ResolverError
            If any resolver raised; no partial object is returned
        """
        specs = self._traits.effective_specs(_merge_overrides(overrides, fields))
        seq = get_sequence_registry().next(self._definition.factory_id)
        config = get_config()
        ctx = BuildContext(
            definition=self._definition,
            seq=seq,
            specs=specs,
            copy_literals=config.copy_default_literals,
            trace_resolution=config.trace_resolution,
        )

        trace = BuildTrace(
            factory_name=self._definition.name,
            factory_id=self._definition.factory_id,
            seq=seq,
            metadata={"traits": list(self._traits.selected)},
        )
        with BuildTraceScope(trace):
            logger.debug(
                f"Building {trace.label} with traits {list(self._traits.selected)}"
            )
            return await assemble(ctx)

    async def build_list(
        self,
        count: int,
        overrides: Optional[Mapping[str, Any]] = None,
        /,
        **fields: Any,
    ) -> List[Dict[str, Any]]:
        """
        Build ``count`` independent objects sharing the same overrides.

        Objects are built one after another, each with its own sequence
        number; the first failure aborts the list. As with ``build``, an
        override mapping must be passed positionally after ``count``.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"count must be a non-negative integer, got {count!r}")

        merged = _merge_overrides(overrides, fields)
        return [await self.build(merged) for _ in range(count)]

    def reset_sequence(self) -> None:
        """Restart this factory's sequence at 0 (shared by every handle)."""
        get_sequence_registry().reset(self._definition.factory_id)

    def __repr__(self) -> str:
        return (
            f"FactoryInterface({self._definition.name!r}, "
            f"traits={list(self._traits.selected)!r})"
        )


def _merge_overrides(
    overrides: Optional[Mapping[str, Any]], fields: Mapping[str, Any]
) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(overrides) if overrides else {}
    merged.update(fields)
    return merged


def define_factory(
    field_names: Sequence[str],
    default_fields: Mapping[str, Any],
    traits: Optional[Mapping[str, Any]] = None,
    name: Optional[str] = None,
) -> FactoryInterface:
    """
    Define a factory and return its handle.

    Parameters
    ----------
    field_names : Sequence[str]
        Output field names, in the order produced objects list them
    default_fields : Mapping
        Literal value or ``lazy`` resolver for every output field; extra
        keys declare transient fields
    traits : Mapping, optional
        Trait name -> ``{"default_fields": {...}}`` overlay
    name : str, optional
        Label used in logs and errors

    Returns
    -------
    FactoryInterface
        Handle with no traits selected

    Raises
    ------
    ConfigurationError
        If the options are malformed, an output field lacks a default, or a
        trait overlays an undeclared field
    """
    options = parse_define_options(
        name=name or "Factory",
        field_names=field_names,
        default_fields=default_fields,
        traits=traits or {},
    )
    return FactoryInterface(FactoryDefinition.from_options(options))
