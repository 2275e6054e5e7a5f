# Public API
import logging

from .builder import ContainerBuilder
from .container import Container
from .definition import (
    AliasDefinition,
    ClassDefinition,
    Definition,
    EntryReference,
    FactoryDefinition,
    ValueDefinition,
)
from .definition_helper import DefinitionHelper, create, factory, link, value
from .definition_manager import DefinitionManager
from .exceptions import (
    CircularDependencyError,
    DependencyError,
    InjectKitError,
    InvalidArgumentError,
    InvalidDefinitionError,
    NotFoundError,
)
from .inject_descriptor import Inject
from .injector import DefaultInjector, Injector
from .proxy import LazyProxyFactory, is_lazy_proxy, is_proxy_initialized
from .reflection import name_of
from .scope import Scope

__all__ = [
    "Container",
    "ContainerBuilder",
    "DefinitionManager",
    "Injector",
    "DefaultInjector",
    "LazyProxyFactory",
    "Scope",
    "Inject",
    # Definitions
    "Definition",
    "ValueDefinition",
    "FactoryDefinition",
    "AliasDefinition",
    "ClassDefinition",
    "EntryReference",
    "DefinitionHelper",
    "value",
    "factory",
    "link",
    "create",
    # Helpers
    "name_of",
    "is_lazy_proxy",
    "is_proxy_initialized",
    # Exceptions
    "InjectKitError",
    "InvalidArgumentError",
    "NotFoundError",
    "DependencyError",
    "CircularDependencyError",
    "InvalidDefinitionError",
]

__version__ = '1.0.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())
