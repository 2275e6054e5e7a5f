"""
Injector

This module builds instances from class definitions. The container decides
*whether* to build (cache, scope, proxies, circular guard); the injector
decides *how*:

1. Constructor injection: every constructor parameter is filled from the
   definition's override, else from its type hint, else left to its default
2. Property injection: every Inject attribute and every property override
   of the definition is assigned
3. Method injection: every method of the definition is called with its
   parameters filled like the constructor's

Nested entries are resolved by calling back into the container.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple

from .definition import ClassDefinition, EntryReference
from .exceptions import DependencyError, NotFoundError
from .reflection import (
    InjectionPoint,
    ParameterSpec,
    entry_name_for_hint,
    injection_points_of,
    method_parameters_of,
    parameters_of,
)

if TYPE_CHECKING:
    from .container import Container

logger = logging.getLogger(__name__)

_USE_DEFAULT = object()


class Injector(ABC):
    """Builds instances and injects dependencies into them.

    Implementations are given to the Container, which calls them with the
    circular dependency guard already in place.
    """

    @abstractmethod
    def create_instance(self, definition: ClassDefinition) -> Any:
        """Build a new instance of ``definition.cls`` with all its dependencies.

        Raises:
            DependencyError: When a required dependency cannot be resolved
        """

    @abstractmethod
    def inject_on_instance(self, definition: ClassDefinition, instance: Any) -> Any:
        """Run property and method injection on an existing instance.

        Returns:
            The same instance
        """


class DefaultInjector(Injector):
    """Injector using constructor signatures and Inject attributes.

    Attributes:
        _container: The container nested entries are resolved from

    Example::

        class UserRepository:
            def __init__(self, db: Database, table: str = "users"):
                ...

        # db is resolved from the container through its hint,
        # table keeps its default
        injector.create_instance(definition)
    """

    def __init__(self, container: 'Container'):
        self._container = container

    @property
    def container(self) -> 'Container':
        return self._container

    def create_instance(self, definition: ClassDefinition) -> Any:
        cls = definition.cls
        args, kwargs = self._resolve_parameters(
            parameters_of(cls),
            definition.constructor_parameters,
            f"{cls.__qualname__}.__init__",
        )
        instance = cls(*args, **kwargs)
        logger.debug("Constructed %s for entry '%s'", cls.__qualname__, definition.name)
        return self.inject_on_instance(definition, instance)

    def inject_on_instance(self, definition: ClassDefinition, instance: Any) -> Any:
        self._inject_properties(definition, instance)
        self._inject_methods(definition, instance)
        return instance

    def _inject_properties(self, definition: ClassDefinition, instance: Any) -> None:
        cls = type(instance)
        overrides = definition.properties
        for point in injection_points_of(cls):
            if point.attr_name in overrides:
                continue
            setattr(instance, point.attr_name, self._injection_point_value(point, cls))

        for attr_name, override in overrides.items():
            target = f"{cls.__qualname__}.{attr_name}"
            setattr(instance, attr_name, self._override_value(override, target))

    def _inject_methods(self, definition: ClassDefinition, instance: Any) -> None:
        cls = type(instance)
        for method_name, overrides in definition.methods.items():
            target = f"{cls.__qualname__}.{method_name}"
            try:
                parameters = method_parameters_of(cls, method_name)
            except AttributeError as e:
                raise DependencyError(
                    f"Cannot inject method {target}: {e}"
                ) from e
            args, kwargs = self._resolve_parameters(parameters, overrides, target)
            getattr(instance, method_name)(*args, **kwargs)

    def _resolve_parameters(
        self,
        parameters: List[ParameterSpec],
        overrides: Mapping[str, Any],
        target: str
    ) -> Tuple[List[Any], Dict[str, Any]]:
        """Compute the call arguments for ``parameters``.

        Positional-only parameters are passed positionally, with their
        default when they are not resolved, so later ones keep their place.

        Raises:
            DependencyError: When an override names an unknown parameter, or
                a required parameter has no value
        """
        unknown = set(overrides) - {param.name for param in parameters}
        if unknown:
            raise DependencyError(
                f"Unknown parameter(s) {', '.join(sorted(unknown))} defined for {target}"
            )

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for param in parameters:
            value = self._parameter_value(param, overrides, target)
            if param.positional_only:
                args.append(param.default if value is _USE_DEFAULT else value)
            elif value is not _USE_DEFAULT:
                kwargs[param.name] = value
        return args, kwargs

    def _parameter_value(
        self,
        param: ParameterSpec,
        overrides: Mapping[str, Any],
        target: str
    ) -> Any:
        if param.name in overrides:
            return self._override_value(overrides[param.name], f"parameter '{param.name}' of {target}")

        if entry_name_for_hint(param.annotation) is not None and self._container.has(param.annotation):
            return self._get_entry(param.annotation, False, f"parameter '{param.name}' of {target}")

        if param.has_default:
            return _USE_DEFAULT

        raise DependencyError(
            f"The parameter '{param.name}' of {target} has no value defined or guessable.\n"
            f"Hint: add a type hint, a default value, or an override with "
            f"create().constructor({param.name}=...)"
        )

    def _injection_point_value(self, point: InjectionPoint, cls: type) -> Any:
        target = f"property {cls.__qualname__}.{point.attr_name}"
        if point.entry is not None:
            return self._get_entry(point.entry, point.lazy, target)
        if entry_name_for_hint(point.annotation) is not None:
            return self._get_entry(point.annotation, point.lazy, target)
        raise DependencyError(
            f"The {target} has no entry to inject: "
            f"use Inject(\"entry.name\") or annotate it with a class"
        )

    def _override_value(self, override: Any, target: str) -> Any:
        if isinstance(override, EntryReference):
            return self._get_entry(override.name, override.lazy, target)
        return override

    def _get_entry(self, entry: Any, lazy: bool, target: str) -> Any:
        try:
            return self._container.get(entry, use_proxy=lazy)
        except NotFoundError as e:
            raise DependencyError(f"Error while injecting {target}: {e}") from e
