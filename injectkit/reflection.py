"""
Reflection

This module discovers what the injector has to provide to a class:

- Constructor and method parameters with their type hints and defaults
- Field injection points declared with the Inject descriptor
- Entry names for classes, and classes for entry names

Type hints are resolved with typing.get_type_hints(). String annotations
that it cannot resolve (common with local classes) are evaluated against
the module namespace of the class, and left unresolved if that fails too.
"""

import importlib
import inspect
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from .exceptions import InvalidArgumentError
from .inject_descriptor import Inject

EMPTY = inspect.Parameter.empty


@dataclass(frozen=True)
class ParameterSpec:
    """A parameter the injector has to fill"""
    name: str
    annotation: Any = None  # None when the parameter has no usable hint
    default: Any = EMPTY
    positional_only: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not EMPTY


@dataclass(frozen=True)
class InjectionPoint:
    """An attribute marked with Inject"""
    attr_name: str
    entry: Any = None  # Explicit entry name or class from Inject(...)
    annotation: Any = None
    lazy: bool = False


def name_of(cls: Type) -> str:
    """Return the entry name of a class: its module and qualified name.

    Example::

        >>> name_of(collections.OrderedDict)
        'collections.OrderedDict'
    """
    return f"{cls.__module__}.{cls.__qualname__}"


def locate_class(name: str) -> Optional[Type]:
    """Find the class whose entry name is ``name`` by importing its module.

    The longest importable module prefix wins, the rest of the name is
    looked up as attributes (nested classes). Returns None when the name
    does not designate an importable class.
    """
    parts = name.split('.')
    for index in range(len(parts) - 1, 0, -1):
        module_name = '.'.join(parts[:index])
        try:
            target: Any = importlib.import_module(module_name)
        except ImportError:
            continue
        for attr in parts[index:]:
            target = getattr(target, attr, None)
            if target is None:
                return None
        return target if isinstance(target, type) else None
    return None


def to_entry_name(entry: Any) -> str:
    """Normalize an entry name argument: classes become their entry name.

    Raises:
        InvalidArgumentError: When the entry is neither a non-empty string
            nor a class
    """
    if isinstance(entry, type):
        return name_of(entry)
    if not isinstance(entry, str):
        raise InvalidArgumentError(
            f"The name parameter must be of type string or a class, got {type(entry).__name__}"
        )
    if not entry:
        raise InvalidArgumentError("The name parameter must not be empty")
    return entry


def entry_name_for_hint(hint: Any) -> Optional[str]:
    """Return the entry name a type hint points to, if it points to one.

    Only user classes qualify. Builtins (str, int, ...) and typing
    constructs (Optional[X], List[X], ...) never do.
    """
    if isinstance(hint, type) and hint.__module__ != 'builtins':
        return name_of(hint)
    return None


def parameters_of(cls: Type) -> List[ParameterSpec]:
    """Return the constructor parameters of a class, ``self`` excluded.

    Classes that do not define their own constructor anywhere in their
    MRO have no parameters.
    """
    init = cls.__init__
    if init is object.__init__:
        return []
    return _parameters(init, owner=cls, skip_first=True)


def method_parameters_of(cls: Type, method_name: str) -> List[ParameterSpec]:
    """Return the parameters of a method of a class, ``self`` excluded."""
    method = getattr(cls, method_name, None)
    if not callable(method):
        raise AttributeError(f"{cls.__name__} has no method '{method_name}'")
    return _parameters(method, owner=cls, skip_first=True)


def injection_points_of(cls: Type) -> List[InjectionPoint]:
    """Return the attributes marked with Inject, base classes first.

    A subclass redefining an attribute replaces the base class point.
    """
    points: Dict[str, InjectionPoint] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        markers = {
            attr: marker for attr, marker in vars(klass).items()
            if isinstance(marker, Inject)
        }
        if not markers:
            continue
        hints = _resolve_type_hints(klass)
        raw_annotations = _own_annotations(klass)
        for attr, marker in markers.items():
            annotation = hints.get(attr, raw_annotations.get(attr))
            if isinstance(annotation, str):
                annotation = _resolve_string_annotation(klass, annotation)
            points[attr] = InjectionPoint(
                attr_name=attr,
                entry=marker.entry,
                annotation=annotation,
                lazy=marker.lazy,
            )
    return list(points.values())


def _parameters(function: Callable, owner: Type, skip_first: bool) -> List[ParameterSpec]:
    try:
        sig = inspect.signature(function)
    except (ValueError, TypeError):
        # Builtin or C extension callables without an inspectable signature
        return []

    hints = _resolve_type_hints(function)
    parameters = []
    for index, (param_name, param) in enumerate(sig.parameters.items()):
        if skip_first and index == 0:
            continue

        # Skip *args and **kwargs (VAR_POSITIONAL and VAR_KEYWORD)
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        annotation = hints.get(param_name, param.annotation)
        if annotation is EMPTY:
            annotation = None
        elif isinstance(annotation, str):
            annotation = _resolve_string_annotation(owner, annotation)

        parameters.append(ParameterSpec(
            name=param_name,
            annotation=annotation,
            default=param.default,
            positional_only=param.kind is inspect.Parameter.POSITIONAL_ONLY,
        ))
    return parameters


def _resolve_type_hints(obj: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError, RecursionError):
        # Unresolvable forward references fall back to raw annotations
        return {}


def _own_annotations(klass: Type) -> Dict[str, Any]:
    try:
        return inspect.get_annotations(klass)
    except NameError:
        return {}


def _resolve_string_annotation(owner: Type, annotation: str) -> Any:
    """Evaluate a string annotation in the namespace of the owner class.

    Returns None when the annotation cannot be evaluated.
    """
    module = inspect.getmodule(owner)
    namespace: Dict[str, Any] = {}
    if module is not None:
        namespace.update(vars(module))
    # Also check class's own namespace (for nested classes)
    namespace.update(vars(owner))
    try:
        return eval(annotation, namespace)
    except (NameError, SyntaxError, AttributeError, TypeError):
        return None
