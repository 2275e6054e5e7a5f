"""
ContainerBuilder

This module provides the configuration entry point for injectkit. A
ContainerBuilder collects settings and definitions, then builds a ready
Container in one step.

Example::

    container = (
        ContainerBuilder()
        .use_autowiring(False)
        .add_definitions({"db.host": "localhost"})
        .add_definitions(production_definitions)
        .build()
    )
"""

from typing import Any, Callable, List, Mapping, Optional, Type

from .container import Container
from .definition_manager import DefinitionManager
from .injector import Injector
from .proxy import LazyProxyFactory


class ContainerBuilder:
    """Builder of configured containers.

    Attributes:
        _container_class: The Container (sub)class to instantiate
        _use_autowiring: Whether undefined class names are autowired
        _definitions: Definition mappings, applied in order by build()
    """

    def __init__(self, container_class: Type[Container] = Container):
        """Initialize a builder with default settings.

        Args:
            container_class: The container class to build. Subclasses are
                registered under their own entry name as well.
        """
        self._container_class = container_class
        self._use_autowiring = True
        self._definitions: List[Mapping[Any, Any]] = []
        self._injector_factory: Optional[Callable[[Container], Injector]] = None
        self._proxy_factory: Optional[LazyProxyFactory] = None

    def use_autowiring(self, enabled: bool) -> 'ContainerBuilder':
        """Enable or disable autowiring of undefined class names."""
        self._use_autowiring = enabled
        return self

    def add_definitions(self, definitions: Mapping[Any, Any]) -> 'ContainerBuilder':
        """Queue definitions; mappings added later override earlier ones."""
        self._definitions.append(definitions)
        return self

    def with_injector(self, injector_factory: Callable[[Container], Injector]) -> 'ContainerBuilder':
        """Use a custom injector, created from the container being built.

        Example::

            builder.with_injector(LoggingInjector)
        """
        self._injector_factory = injector_factory
        return self

    def with_proxy_factory(self, proxy_factory: LazyProxyFactory) -> 'ContainerBuilder':
        self._proxy_factory = proxy_factory
        return self

    def build(self) -> Container:
        """Build the container.

        Each call builds a new, independent container.

        Raises:
            InvalidArgumentError: When a definition key is not a valid entry name
            InvalidDefinitionError: When a definition cannot be built
        """
        container = self._container_class(
            definition_manager=DefinitionManager(use_autowiring=self._use_autowiring),
            proxy_factory=self._proxy_factory,
        )
        if self._injector_factory is not None:
            container.injector = self._injector_factory(container)
        for definitions in self._definitions:
            container.add_definitions(definitions)
        return container
