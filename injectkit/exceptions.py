"""
injectkit Exceptions

Custom exception hierarchy for the injectkit container
"""

from typing import Any, Optional, Sequence


class InjectKitError(Exception):
    """
    Base exception for all injectkit errors.

    All injectkit-specific exceptions inherit from this class.
    You can catch this to handle any container error generically.

    Example:
        >>> try:
        ...     service = container.get(MyService)
        ... except InjectKitError as e:
        ...     print(f"DI error: {e}")
    """

    pass


class InvalidArgumentError(InjectKitError, ValueError):
    """
    Raised when an entry name is malformed.

    Entry names must be non-empty strings or classes. This is a caller
    error and retrying with the same argument always fails.

    Common causes:
        - Passing an instance instead of its class: ``container.get(Database())``
        - Passing ``None`` or an empty string
    """

    pass


class NotFoundError(InjectKitError, LookupError):
    """
    Raised when no entry or definition exists for a requested name.

    Common causes:
        - Forgetting to register the entry with ``set()`` or ``add_definitions()``
        - Typo in the entry name
        - Autowiring disabled and the class was never defined

    Solution:
        Define the entry before requesting it::

            container.set("db.host", "localhost")
            container.add_definitions({"mailer": create(Mailer)})

    Note:
        The error message includes the list of defined entries
        to help identify what is available.
    """

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.name = name


class DependencyError(InjectKitError):
    """
    Raised when a dependency required to build an entry cannot be resolved.

    This error occurs when a constructor parameter, injected property or
    injected method parameter has no override, no resolvable type hint
    and no default value. When the failure comes from a nested lookup,
    the original error is available as ``__cause__``.

    Example::

        class Mailer:
            def __init__(self, host):  # no hint, no default
                ...

        container.get(Mailer)  # DependencyError

    Solution:
        Give the parameter a type hint, a default value, or an override::

            container.set(Mailer, create().constructor(host="smtp.local"))
    """

    pass


class CircularDependencyError(DependencyError):
    """
    Raised when circular dependency is detected during construction.

    This error occurs when class A depends on class B, and class B
    (directly or indirectly) depends on class A, or when a chain of
    aliases points back to itself. It is also raised when two threads
    each build an entry the other one needs.

    Attributes:
        cls: The class (or alias or entry name) that was requested while
            it was still under construction
        chain: The classes under construction when the cycle was found,
            or the names forming the cycle for alias loops and for
            threads waiting on each other

    Solution:
        1. Refactor to remove the circular dependency
        2. Request one side lazily so that it is built on first use::

            container.set(ServiceB, create().constructor(a=link(ServiceA, lazy=True)))
    """

    def __init__(self, message: str, cls: Any = None, chain: Sequence[Any] = ()):
        super().__init__(message)
        self.cls = cls
        self.chain = tuple(chain)


class InvalidDefinitionError(InjectKitError, ValueError):
    """
    Raised when a definition description cannot be turned into a definition.

    Common causes:
        - ``create()`` without a class for an entry name that is not the
          dotted path of an importable class
        - ``factory()`` with something that is not callable
    """

    pass
