"""
Definition

Data classes representing entry definitions
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Type, Union

from .scope import Scope


@dataclass(frozen=True)
class EntryReference:
    """Reference to another entry, resolved when it is injected"""
    name: str
    lazy: bool = False


@dataclass(frozen=True)
class ValueDefinition:
    """Precomputed value"""
    name: str
    value: Any


@dataclass(frozen=True)
class FactoryDefinition:
    """Callable receiving the container and returning the value"""
    name: str
    factory: Callable[[Any], Any]


@dataclass(frozen=True)
class AliasDefinition:
    """Entry resolved through another entry"""
    name: str
    target_name: str


@dataclass(frozen=True)
class ClassDefinition:
    """Recipe for building an instance of a concrete class"""
    name: str
    class_name: str
    cls: Type
    scope: Scope = Scope.SINGLETON
    lazy: bool = False
    constructor_parameters: Mapping[str, Any] = field(default_factory=dict)
    properties: Mapping[str, Any] = field(default_factory=dict)
    methods: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)  # Called in insertion order


Definition = Union[ValueDefinition, FactoryDefinition, AliasDefinition, ClassDefinition]


def as_alias(name: str, reference: EntryReference) -> AliasDefinition:
    """Turn a reference used as a top-level definition into an alias."""
    return AliasDefinition(name=name, target_name=reference.name)

