"""
Lazy Proxy

This module generates lazy-loading proxies: placeholder objects that stand
in for an instance of a class and build the real instance on first use.

A proxy is an instance of a generated subclass of the proxied class, so
isinstance() checks pass before anything is built. The subclass:

- never runs the proxied class's __init__
- forwards attribute access, assignment and deletion to the real instance
- forwards every special method the proxied class defines (__len__,
  __iter__, __call__, __eq__, ...), since Python looks those up on the type

The first forwarded operation runs the initializer once, under a per-proxy
lock. After that the real instance serves every operation directly.

Example::

    factory = LazyProxyFactory()
    proxy = factory.create_proxy(Heavy, lambda: Heavy(load_everything()))
    isinstance(proxy, Heavy)   # True, nothing built yet
    proxy.compute()            # Heavy is built here, once

Note:
    Classes deriving from builtin types other than object (dict, list, ...)
    cannot be proxied.
"""

import logging
import threading
from typing import Any, Callable, Dict, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

_UNSET = object()

# Attributes served by the proxy itself, never forwarded
_HOLDER_ATTRIBUTES = frozenset({
    '_lazy_initializer',
    '_lazy_wrapped',
    '_lazy_lock',
    '__class__',
})

# Special methods a proxy must keep for itself
_NOT_FORWARDED = frozenset({
    '__new__', '__init__', '__init_subclass__', '__subclasshook__', '__class_getitem__',
    '__getattribute__', '__getattr__', '__setattr__', '__delattr__',
    '__class__', '__dict__', '__weakref__', '__slots__',
    '__get__', '__set__', '__delete__', '__set_name__',
    '__reduce__', '__reduce_ex__', '__getstate__', '__setstate__',
    '__del__', '__sizeof__',
})


class LazyLoadingValueHolder:
    """Marker base class of every generated proxy class."""


def is_lazy_proxy(obj: Any) -> bool:
    """Check whether ``obj`` is a lazy proxy, without initializing it."""
    return issubclass(type(obj), LazyLoadingValueHolder)


def is_proxy_initialized(proxy: Any) -> bool:
    """Check whether the real instance behind ``proxy`` has been built.

    Raises:
        TypeError: When ``proxy`` is not a lazy proxy
    """
    if not is_lazy_proxy(proxy):
        raise TypeError(f"{type(proxy).__name__} is not a lazy proxy")
    return object.__getattribute__(proxy, '_lazy_wrapped') is not _UNSET


def initialize_proxy(proxy: Any) -> Any:
    """Build the real instance behind ``proxy`` if needed and return it."""
    wrapped = object.__getattribute__(proxy, '_lazy_wrapped')
    if wrapped is not _UNSET:
        return wrapped

    with object.__getattribute__(proxy, '_lazy_lock'):
        wrapped = object.__getattribute__(proxy, '_lazy_wrapped')
        if wrapped is _UNSET:
            initializer = object.__getattribute__(proxy, '_lazy_initializer')
            logger.debug("Initializing lazy proxy for %s", type(proxy).__mro__[1].__qualname__)
            # A failing initializer is kept, the next use retries
            wrapped = initializer()
            object.__setattr__(proxy, '_lazy_wrapped', wrapped)
            object.__setattr__(proxy, '_lazy_initializer', None)
    return wrapped


def _wrapped(proxy: Any) -> Any:
    wrapped = object.__getattribute__(proxy, '_lazy_wrapped')
    if wrapped is _UNSET:
        wrapped = initialize_proxy(proxy)
    return wrapped


def _proxy_getattribute(self: Any, name: str) -> Any:
    if name in _HOLDER_ATTRIBUTES:
        return object.__getattribute__(self, name)
    return getattr(_wrapped(self), name)


def _proxy_setattr(self: Any, name: str, value: Any) -> None:
    setattr(_wrapped(self), name, value)


def _proxy_delattr(self: Any, name: str) -> None:
    delattr(_wrapped(self), name)


def _forwarder(name: str) -> Callable[..., Any]:
    def forward(self: Any, *args: Any, **kwargs: Any) -> Any:
        wrapped = _wrapped(self)
        return getattr(type(wrapped), name)(wrapped, *args, **kwargs)

    forward.__name__ = name
    return forward


class LazyProxyFactory:
    """Factory of lazy-loading proxies.

    Proxy classes are generated once per proxied class and reused.

    Attributes:
        _proxy_classes: Generated proxy classes by proxied class
    """

    def __init__(self):
        self._proxy_classes: Dict[Type, Type] = {}
        self._lock = threading.Lock()

    def create_proxy(self, cls: Type[T], initializer: Callable[[], T]) -> T:
        """Create a proxy of ``cls`` that calls ``initializer`` on first use.

        Args:
            cls: The class the proxy must look like
            initializer: Builds the real instance. Called at most once
                successfully.

        Returns:
            An uninitialized proxy, an instance of a subclass of ``cls``
        """
        proxy = object.__new__(self.get_proxy_class(cls))
        object.__setattr__(proxy, '_lazy_initializer', initializer)
        object.__setattr__(proxy, '_lazy_wrapped', _UNSET)
        object.__setattr__(proxy, '_lazy_lock', threading.RLock())
        logger.debug("Created lazy proxy for %s", cls.__qualname__)
        return proxy

    def get_proxy_class(self, cls: Type) -> Type:
        """Return the proxy class for ``cls``, generating it on first request."""
        proxy_class = self._proxy_classes.get(cls)
        if proxy_class is not None:
            return proxy_class

        with self._lock:
            if cls not in self._proxy_classes:
                self._proxy_classes[cls] = self._generate_proxy_class(cls)
            return self._proxy_classes[cls]

    @staticmethod
    def _generate_proxy_class(cls: Type) -> Type:
        namespace: Dict[str, Any] = {
            '__module__': cls.__module__,
            '__qualname__': f"{cls.__qualname__}LazyProxy",
            '__doc__': cls.__doc__,
            '__getattribute__': _proxy_getattribute,
            '__setattr__': _proxy_setattr,
            '__delattr__': _proxy_delattr,
        }
        for klass in cls.__mro__:
            if klass is object:
                continue
            for name, attr in vars(klass).items():
                if (name.startswith('__') and name.endswith('__')
                        and name not in _NOT_FORWARDED
                        and name not in namespace
                        and callable(attr)):
                    namespace[name] = _forwarder(name)

        proxy_class = type(cls)(f"{cls.__name__}LazyProxy", (cls, LazyLoadingValueHolder), namespace)
        # The proxy never builds through its own constructor
        proxy_class.__abstractmethods__ = frozenset()
        return proxy_class
