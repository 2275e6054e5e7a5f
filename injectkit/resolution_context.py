"""
ResolutionContext

This module tracks the classes currently being constructed on the current
call chain. It is the container's circular dependency guard.

The set is stored in a ContextVar, so every thread and every asyncio task
has its own: a class being built by one request never makes an unrelated,
concurrent request fail with a circular dependency error.

Each construction pushes a new tuple and resets the ContextVar token
on exit, which restores the previous chain on every exit path.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import FrozenSet, Iterator, Tuple, Type

from .exceptions import CircularDependencyError

logger = logging.getLogger(__name__)

_classes_being_instantiated: ContextVar[Tuple[Type, ...]] = ContextVar(
    '_INJECTKIT_CLASSES_BEING_INSTANTIATED',
    default=()
)


def classes_being_instantiated() -> FrozenSet[Type]:
    """Return the classes under construction on the current call chain."""
    return frozenset(_classes_being_instantiated.get())


@contextmanager
def instantiating(cls: Type) -> Iterator[None]:
    """Mark ``cls`` as under construction for the duration of the block.

    Raises:
        CircularDependencyError: When ``cls`` is already under construction
            on the current call chain. The guard is left untouched.

    Example::

        with instantiating(Database):
            instance = injector.create_instance(definition)
    """
    chain = _classes_being_instantiated.get()
    if cls in chain:
        cycle = " -> ".join(c.__name__ for c in chain + (cls,))
        logger.debug("Circular dependency detected: %s", cycle)
        raise CircularDependencyError(
            f"Circular dependency detected while trying to instantiate class "
            f"'{cls.__module__}.{cls.__qualname__}': {cycle}",
            cls=cls,
            chain=chain,
        )

    token = _classes_being_instantiated.set(chain + (cls,))
    try:
        yield
    finally:
        _classes_being_instantiated.reset(token)
