"""
Trait selection and field spec precedence.

Effective spec per field, highest precedence first:

1. call-level override (key present, even with a ``None`` value)
2. selected trait overlays, later selections over earlier ones
3. the definition's default
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from fieldforge.definition import FactoryDefinition
from fieldforge.field_spec import FieldSpec, as_field_specs


class TraitStack:
    """Ordered, immutable selection of traits against one definition."""

    def __init__(
        self, definition: FactoryDefinition, selected: Tuple[str, ...] = ()
    ) -> None:
        self.definition = definition
        self.selected = selected

    def push(self, trait_name: str) -> "TraitStack":
        """
        Return a new stack with ``trait_name`` appended.

        Selecting the same trait more than once is allowed. Unknown trait
        names raise ConfigurationError immediately.
        """
        self.definition.get_trait(trait_name)
        return TraitStack(self.definition, self.selected + (trait_name,))

    def effective_specs(
        self, overrides: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, FieldSpec]:
        """
        Merge defaults, selected traits and call-level overrides.

        Parameters
        ----------
        overrides : Mapping, optional
            Call-level values or lazy specs keyed by field name

        Returns
        -------
        dict
            Effective FieldSpec for every declared field, in declaration order

        Raises
        ------
        ConfigurationError
            If an override names an undeclared field
        """
        specs: Dict[str, FieldSpec] = dict(self.definition.default_specs)
        for trait_name in self.selected:
            specs.update(self.definition.get_trait(trait_name).specs)

        if overrides:
            self.definition.check_declared(overrides)
            specs.update(as_field_specs(overrides))
        return specs

    def __repr__(self) -> str:
        return f"TraitStack({self.definition.name!r}, selected={list(self.selected)!r})"
