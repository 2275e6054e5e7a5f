"""
DefinitionManager

This module stores the definitions of a container and answers the
container's only question about them: what is the definition for a name?

Lookup order:

1. Definitions added explicitly (set(), add_definitions())
2. With autowiring enabled, a default singleton ClassDefinition for a name
   that is the entry name of a concrete class, either a class the container
   has already seen or one importable from its dotted path
"""

import inspect
import logging
import threading
import types
from typing import Any, Dict, List, Mapping, Optional, Type

from .definition import (
    ClassDefinition,
    Definition,
    EntryReference,
    FactoryDefinition,
    ValueDefinition,
    as_alias,
)
from .definition_helper import ClassDefinitionHelper, DefinitionHelper
from .reflection import locate_class, name_of, to_entry_name

logger = logging.getLogger(__name__)


class DefinitionManager:
    """Keyed store of entry definitions with optional autowiring.

    Attributes:
        _definitions: Explicit definitions by entry name
        _autowired: Class definitions derived by autowiring, cached
        _known_classes: Classes seen by the container, by entry name. Lets
            classes that cannot be imported by name (local classes) be
            autowired.

    Example::

        manager = DefinitionManager()
        manager.add_definition(ValueDefinition("db.host", "localhost"))
        manager.get_definition("db.host")  # ValueDefinition
        manager.get_definition("myapp.services.Mailer")  # autowired ClassDefinition
    """

    def __init__(self, use_autowiring: bool = True):
        """Initialize an empty manager.

        Args:
            use_autowiring: Derive class definitions for undefined class names
        """
        self._definitions: Dict[str, Definition] = {}
        self._autowired: Dict[str, ClassDefinition] = {}
        self._known_classes: Dict[str, Type] = {}
        self._use_autowiring = use_autowiring
        self._lock = threading.Lock()

    @property
    def use_autowiring(self) -> bool:
        return self._use_autowiring

    def add_definition(self, definition: Definition) -> None:
        """Add or replace the definition for ``definition.name``."""
        with self._lock:
            replaced = definition.name in self._definitions
            self._definitions[definition.name] = definition
            self._autowired.pop(definition.name, None)
        logger.debug(
            "%s definition for '%s' (%s)",
            "Replaced" if replaced else "Added",
            definition.name,
            type(definition).__name__,
        )

    def to_definitions(self, definitions: Mapping[Any, Any]) -> List[Definition]:
        """Convert a mapping of entry name to description into definitions.

        Plain functions and lambdas become factory definitions, helpers and
        links become their definitions, anything else a value definition.
        Nothing is stored: the whole mapping is converted before the caller
        adds any of it.

        Raises:
            InvalidArgumentError: When a key is not a valid entry name
            InvalidDefinitionError: When a description cannot be converted
        """
        return [
            self.to_definition(self.entry_name(entry), description, functions_as_factories=True)
            for entry, description in definitions.items()
        ]

    def to_definition(self, name: str, description: Any, functions_as_factories: bool = False) -> Definition:
        """Convert a definition description into a definition.

        Args:
            name: The entry name
            description: A DefinitionHelper, an EntryReference or a raw value
            functions_as_factories: Treat plain functions and lambdas as
                factories instead of values

        Returns:
            The definition for ``name``
        """
        if isinstance(description, ClassDefinitionHelper):
            return description.get_definition(name, default_class=self._known_classes.get(name))
        if isinstance(description, DefinitionHelper):
            return description.get_definition(name)
        if isinstance(description, EntryReference):
            return as_alias(name, description)
        if functions_as_factories and isinstance(description, types.FunctionType):
            return FactoryDefinition(name=name, factory=description)
        return ValueDefinition(name=name, value=description)

    def entry_name(self, entry: Any) -> str:
        """Normalize an entry name argument, remembering classes for autowiring.

        Raises:
            InvalidArgumentError: When the entry is neither a non-empty string
                nor a class
        """
        if isinstance(entry, type):
            return self.remember_class(entry)
        return to_entry_name(entry)

    def remember_class(self, cls: Type) -> str:
        """Make ``cls`` available to autowiring and return its entry name."""
        name = name_of(cls)
        if name not in self._known_classes:
            with self._lock:
                self._known_classes[name] = cls
        return name

    def get_definition(self, name: str) -> Optional[Definition]:
        """Return the definition for ``name``, or None if there is none.

        Never constructs anything. Autowiring may import the module named
        by the entry name.
        """
        definition = self._definitions.get(name)
        if definition is not None:
            return definition
        if not self._use_autowiring:
            return None

        definition = self._autowired.get(name)
        if definition is not None:
            return definition

        cls = self._known_classes.get(name) or locate_class(name)
        if cls is None or inspect.isabstract(cls):
            return None

        definition = ClassDefinition(name=name, class_name=name, cls=cls)
        with self._lock:
            # A concurrent add_definition() wins over autowiring
            if name in self._definitions:
                return self._definitions[name]
            self._autowired.setdefault(name, definition)
            return self._autowired[name]

    def get_definition_for_class(self, cls: Type) -> Optional[Definition]:
        """Return the definition registered under the entry name of ``cls``."""
        return self.get_definition(self.remember_class(cls))

    def definition_names(self) -> List[str]:
        """Return the explicitly defined entry names, sorted."""
        return sorted(self._definitions)
