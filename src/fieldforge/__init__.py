"""
fieldforge: asynchronous test-fixture factories.

Define a factory once with literal or lazy field specs, then build fresh,
independently mutable objects with sequence numbers, cross-field
dependencies, traits and transient fields.
"""

from .definition import Trait
from .exceptions import (
    CircularDependencyError,
    ConfigurationError,
    ErrorSeverity,
    FieldForgeError,
    ResolverError,
)
from .factory import FactoryInterface, define_factory
from .field_spec import FieldSpec, LazySpec, LiteralSpec, lazy
from .resolver import ResolverContext
from .sequence import SequenceRegistry, get_sequence_registry, reset_all_sequence

__version__ = "0.1.0"

__all__ = [
    # Definition
    "define_factory",
    "lazy",
    "FactoryInterface",
    "FieldSpec",
    "LazySpec",
    "LiteralSpec",
    "ResolverContext",
    "Trait",
    # Sequences
    "SequenceRegistry",
    "get_sequence_registry",
    "reset_all_sequence",
    # Errors
    "FieldForgeError",
    "ErrorSeverity",
    "ConfigurationError",
    "CircularDependencyError",
    "ResolverError",
]
