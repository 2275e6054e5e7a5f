"""
DefinitionHelper

This module provides the helpers that describe definitions when calling
Container.set() or Container.add_definitions():

- value(v): a precomputed value
- factory(fn): a callable receiving the container
- link(name): an alias to another entry, or a reference inside overrides
- create(cls): a class recipe, configured fluently

Example::

    container.add_definitions({
        "db.host": "localhost",
        "logger": factory(lambda c: logging.getLogger("app")),
        Repository: create(SqlRepository)
            .constructor(host=link("db.host"))
            .scope(Scope.PROTOTYPE),
        "repository": link(Repository),
    })

A raw value passed to set() is always a value definition. Helpers are the
only way to turn a callable into a factory through set().
"""

from typing import Any, Callable, Dict, Optional, Type, Union

from .definition import (
    ClassDefinition,
    Definition,
    EntryReference,
    FactoryDefinition,
    ValueDefinition,
)
from .exceptions import InvalidDefinitionError
from .reflection import locate_class, name_of, to_entry_name
from .scope import Scope


class DefinitionHelper:
    """Base class for definition helpers.

    A helper does not know its entry name until it is registered, so it
    produces the definition only when asked with the name.

    Note:
        This class is not used directly. Use value(), factory() or
        create() instead.
    """

    def get_definition(self, name: str) -> Definition:
        """Build the definition for the entry ``name``.

        Args:
            name: The entry name the helper is registered under

        Returns:
            The immutable definition
        """
        raise NotImplementedError


class ValueDefinitionHelper(DefinitionHelper):
    """Helper for value definitions"""

    def __init__(self, value: Any):
        self._value = value

    def get_definition(self, name: str) -> ValueDefinition:
        return ValueDefinition(name=name, value=self._value)


class FactoryDefinitionHelper(DefinitionHelper):
    """Helper for factory definitions"""

    def __init__(self, factory: Callable[[Any], Any]):
        if not callable(factory):
            raise InvalidDefinitionError(
                f"factory() expects a callable, got {type(factory).__name__}"
            )
        self._factory = factory

    def get_definition(self, name: str) -> FactoryDefinition:
        return FactoryDefinition(name=name, factory=self._factory)


class ClassDefinitionHelper(DefinitionHelper):
    """Fluent helper for class definitions.

    Each configuration method returns the helper so calls can be chained.

    Example::

        create(SqlRepository) \\
            .scope(Scope.PROTOTYPE) \\
            .lazy() \\
            .constructor(host=link("db.host"), port=5432) \\
            .property("logger", link("logger")) \\
            .method("set_timeout", seconds=30)
    """

    def __init__(self, cls: Optional[Type] = None):
        """Initialize the helper.

        Args:
            cls: The class to build. Defaults to the class whose entry
                name is the name the helper is registered under.
        """
        self._cls = cls
        self._scope = Scope.SINGLETON
        self._lazy = False
        self._constructor_parameters: Dict[str, Any] = {}
        self._properties: Dict[str, Any] = {}
        self._methods: Dict[str, Dict[str, Any]] = {}

    def scope(self, scope: Scope) -> 'ClassDefinitionHelper':
        self._scope = scope
        return self

    def lazy(self, lazy: bool = True) -> 'ClassDefinitionHelper':
        self._lazy = lazy
        return self

    def constructor(self, **parameters: Any) -> 'ClassDefinitionHelper':
        """Override constructor parameters by name."""
        self._constructor_parameters.update(parameters)
        return self

    def property(self, attr_name: str, value: Any) -> 'ClassDefinitionHelper':
        """Inject ``value`` into the attribute ``attr_name`` after construction."""
        self._properties[attr_name] = value
        return self

    def method(self, method_name: str, **parameters: Any) -> 'ClassDefinitionHelper':
        """Call ``method_name`` after construction, overriding parameters by name."""
        self._methods.setdefault(method_name, {}).update(parameters)
        return self

    def get_definition(self, name: str, default_class: Optional[Type] = None) -> ClassDefinition:
        """Build the class definition for ``name``.

        Args:
            name: The entry name the helper is registered under
            default_class: The class to build when none was given, if the
                caller already knows the class named ``name``

        Raises:
            InvalidDefinitionError: When no class was given and ``name`` is
                not the entry name of an importable class
        """
        cls = self._cls or default_class or locate_class(name)
        if cls is None:
            raise InvalidDefinitionError(
                f"Entry '{name}' cannot be created: no class was given and "
                f"'{name}' is not the name of an importable class.\n"
                f"Hint: create(MyClass) instead of create()"
            )
        return ClassDefinition(
            name=name,
            class_name=name_of(cls),
            cls=cls,
            scope=self._scope,
            lazy=self._lazy,
            constructor_parameters=dict(self._constructor_parameters),
            properties=dict(self._properties),
            methods={method: dict(params) for method, params in self._methods.items()},
        )


def value(value: Any) -> ValueDefinitionHelper:
    """Define a value. Needed only to register a callable as a value in add_definitions()."""
    return ValueDefinitionHelper(value)


def factory(factory: Callable[[Any], Any]) -> FactoryDefinitionHelper:
    """Define an entry computed once by ``factory(container)``."""
    return FactoryDefinitionHelper(factory)


def link(entry: Union[str, Type], lazy: bool = False) -> EntryReference:
    """Reference another entry.

    As a definition, the entry becomes an alias. As a constructor parameter,
    property or method parameter, the referenced entry is injected, as a lazy
    proxy when ``lazy`` is True.
    """
    return EntryReference(name=to_entry_name(entry), lazy=lazy)


def create(cls: Optional[Type] = None) -> ClassDefinitionHelper:
    """Define an entry built by instantiating ``cls`` with injection."""
    return ClassDefinitionHelper(cls)
