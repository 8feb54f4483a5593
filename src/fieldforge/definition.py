"""
Factory definitions and their validated configuration.

A FactoryDefinition is built once per ``define_factory`` call from the
user-supplied options and is immutable afterwards: ordered output field
names, default field specs (output plus transient fields) and named traits.
"""

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fieldforge.exceptions import ConfigurationError
from fieldforge.field_spec import FieldSpec, as_field_specs
from fieldforge.observability import get_logger

logger = get_logger(__name__)


class TraitOptions(BaseModel):
    """Overlay options for a single trait."""

    default_fields: Dict[str, Any] = Field(
        default_factory=dict,
        description="Partial field specs applied when the trait is in use",
    )

    model_config = ConfigDict(extra="forbid")


class FactoryDefineOptions(BaseModel):
    """Options accepted by ``define_factory``."""

    name: str = Field("Factory", description="Label used in logs and errors")
    field_names: List[str] = Field(
        ..., description="Output field names in declaration order"
    )
    default_fields: Dict[str, Any] = Field(
        ..., description="Default spec for every output and transient field"
    )
    traits: Dict[str, TraitOptions] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    @field_validator("field_names")
    @classmethod
    def _unique_field_names(cls, value: List[str]) -> List[str]:
        seen = set()
        for name in value:
            if not name:
                raise ValueError("field names must be non-empty strings")
            if name in seen:
                raise ValueError(f"duplicate field name '{name}'")
            seen.add(name)
        return value

    @field_validator("traits", mode="before")
    @classmethod
    def _trait_instances_to_options(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        return {
            trait_name: (
                TraitOptions(default_fields=dict(trait.specs))
                if isinstance(trait, Trait)
                else trait
            )
            for trait_name, trait in value.items()
        }


@dataclass(frozen=True)
class Trait:
    """A named partial overlay of field specs."""

    name: str
    specs: Mapping[str, FieldSpec]


@dataclass(frozen=True)
class FactoryDefinition:
    """Immutable description of one factory."""

    name: str
    field_names: Tuple[str, ...]
    default_specs: Mapping[str, FieldSpec]
    traits: Mapping[str, Trait]
    factory_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def transient_field_names(self) -> Tuple[str, ...]:
        outputs = set(self.field_names)
        return tuple(name for name in self.default_specs if name not in outputs)

    @property
    def declared_field_names(self) -> FrozenSet[str]:
        return frozenset(self.default_specs)

    def is_declared(self, field_name: str) -> bool:
        return field_name in self.default_specs

    def get_trait(self, trait_name: str) -> Trait:
        """
        Look up a trait by name.

        Raises
        ------
        ConfigurationError
            If the factory declares no such trait
        """
        trait = self.traits.get(trait_name)
        if trait is None:
            available = ", ".join(sorted(self.traits)) or "none"
            raise ConfigurationError(
                message=f"Unknown trait '{trait_name}' (available: {available})",
                factory_name=self.name,
                trait_name=trait_name,
            )
        return trait

    def check_declared(self, field_names: Iterable[str], where: str = "overrides") -> None:
        """Raise ConfigurationError for the first undeclared name."""
        for field_name in field_names:
            if field_name not in self.default_specs:
                raise ConfigurationError(
                    message=f"Undeclared field '{field_name}' in {where}",
                    factory_name=self.name,
                    field_name=field_name,
                )

    @classmethod
    def from_options(cls, options: FactoryDefineOptions) -> "FactoryDefinition":
        """
        Build a definition from validated options.

        Parameters
        ----------
        options : FactoryDefineOptions
            Parsed ``define_factory`` arguments

        Returns
        -------
        FactoryDefinition
            Frozen definition with normalized field specs

        Raises
        ------
        ConfigurationError
            If an output field has no default or a trait overlays an
            undeclared field
        """
        for field_name in options.field_names:
            if field_name not in options.default_fields:
                raise ConfigurationError(
                    message=f"Missing default for field '{field_name}'",
                    factory_name=options.name,
                    field_name=field_name,
                )

        traits: Dict[str, Trait] = {}
        for trait_name, trait_options in options.traits.items():
            for field_name in trait_options.default_fields:
                if field_name not in options.default_fields:
                    raise ConfigurationError(
                        message=(
                            f"Undeclared field '{field_name}' in trait '{trait_name}'"
                        ),
                        factory_name=options.name,
                        field_name=field_name,
                        trait_name=trait_name,
                    )
            traits[trait_name] = Trait(
                name=trait_name,
                specs=MappingProxyType(
                    as_field_specs(trait_options.default_fields, owned=True)
                ),
            )

        definition = cls(
            name=options.name,
            field_names=tuple(options.field_names),
            default_specs=MappingProxyType(
                as_field_specs(options.default_fields, owned=True)
            ),
            traits=MappingProxyType(traits),
        )
        logger.debug(
            f"Defined factory {definition.name} ({definition.factory_id}) with "
            f"{len(definition.field_names)} fields, "
            f"{len(definition.transient_field_names)} transient, "
            f"{len(traits)} traits"
        )
        return definition


def parse_define_options(**kwargs: Any) -> FactoryDefineOptions:
    """Validate raw ``define_factory`` arguments, raising ConfigurationError."""
    try:
        return FactoryDefineOptions.model_validate(kwargs)
    except ValidationError as exc:
        raise ConfigurationError(
            message=f"Invalid factory options: {exc.errors()[0]['msg']}",
            factory_name=str(kwargs.get("name") or "Factory"),
            context={"errors": [str(error["loc"]) for error in exc.errors()]},
            cause=exc,
        ) from exc
