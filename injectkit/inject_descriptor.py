"""
Inject

This module provides a descriptor that marks a class attribute as a
field injection point. The container fills marked attributes after the
instance is constructed, or on an existing object through inject_on():

    class UserController:
        repository: UserRepository = Inject()
        mailer = Inject("mailer.smtp")

        def action(self):
            return self.repository.fetch_data()

The descriptor itself never resolves anything. Injection stores the value
in the instance __dict__, which then shadows the descriptor.
"""

from typing import Any, Optional, Type, Union


class Inject:
    """
    Marker descriptor for field injection.

    Attributes:
        entry: The entry name (or class) to inject, or None to use the
            attribute annotation
        lazy: Request a lazy proxy instead of the real instance
        attr_name: The attribute name this descriptor is assigned to

    Example::

        class MyService:
            repository: UserRepository = Inject()
            cache = Inject(CacheService, lazy=True)
    """

    def __init__(self, entry: Union[str, Type, None] = None, lazy: bool = False):
        """
        Initialize the marker.

        Args:
            entry: Entry name or class to inject. Defaults to the
                attribute's type annotation.
            lazy: If True, a lazy proxy is injected
        """
        self.entry = entry
        self.lazy = lazy
        self.attr_name: Optional[str] = None

    def __set_name__(self, owner: Type, name: str) -> None:
        self.attr_name = name

    def __get__(self, obj: Optional[object], objtype: Optional[Type] = None) -> Any:
        """
        Return the descriptor on class access.

        Instance access only reaches this method when nothing has been
        injected yet, since injected values live in the instance __dict__.

        Raises:
            AttributeError: When accessed on an instance before injection
        """
        if obj is None:
            return self
        raise AttributeError(
            f"'{type(obj).__name__}.{self.attr_name}' has not been injected. "
            "Resolve the object through the container or call inject_on()."
        )

    def __repr__(self) -> str:
        entry = getattr(self.entry, '__name__', self.entry)
        return f"Inject({entry!r}, lazy={self.lazy})"
