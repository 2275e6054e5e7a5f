"""
Container

This module provides the resolution engine of injectkit. It is the heart of
the package, responsible for:

- Returning cached entries
- Dispatching on definition kinds (value, factory, alias, class)
- Applying scopes (singleton entries are cached, prototype entries are not)
- Detecting circular dependencies between classes under construction
- Substituting lazy proxies for eager construction on request

Definition storage, instance construction and proxy generation are
delegated to the DefinitionManager, the Injector and the LazyProxyFactory.

Thread safety:
    Cached entries are read without locking. An uncached singleton entry
    is resolved while holding a lock for its name, so concurrent requests
    for it construct it once. The circular dependency guard is per call
    chain (see resolution_context).

    Before blocking on an entry lock held by another thread, a thread
    checks whether that thread is itself waiting, directly or through
    other threads, for an entry this thread holds. Such a wait could never
    end, so it fails with CircularDependencyError instead.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Type, Union

from .definition import (
    AliasDefinition,
    ClassDefinition,
    Definition,
    FactoryDefinition,
    ValueDefinition,
)
from .definition_manager import DefinitionManager
from .exceptions import CircularDependencyError, NotFoundError
from .injector import DefaultInjector, Injector
from .proxy import LazyProxyFactory
from .reflection import name_of
from .resolution_context import instantiating
from .scope import Scope

logger = logging.getLogger(__name__)

_MISSING = object()

Entry = Union[str, Type]


class Container:
    """Dependency injection container.

    Attributes:
        _entries: Cached instances by entry name
        _locks: One lock per cached entry name, serializing construction
        _owners: Thread holding each entry lock, by entry name
        _waiting: Entry name each blocked thread waits for, by thread

    Example::

        container = Container()
        container.add_definitions({
            "db.host": "localhost",
            Database: create().constructor(host=link("db.host")),
        })

        repository = container.get(UserRepository)  # Database injected
        heavy = container.get(ReportEngine, use_proxy=True)  # built on first use

    Note:
        The container registers itself under its own entry name, so classes
        depending on ``Container`` receive the container that builds them.
    """

    def __init__(
        self,
        definition_manager: Optional[DefinitionManager] = None,
        injector: Optional[Injector] = None,
        proxy_factory: Optional[LazyProxyFactory] = None
    ):
        """Initialize a container. Every collaborator can be overridden.

        Args:
            definition_manager: Definition storage. Defaults to a
                DefinitionManager with autowiring.
            injector: Builds instances. Defaults to a DefaultInjector
                resolving from this container.
            proxy_factory: Generates lazy proxies. Defaults to a
                LazyProxyFactory.
        """
        self._entries: Dict[str, Any] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_lock = threading.Lock()
        self._owners: Dict[str, int] = {}
        self._waiting: Dict[int, str] = {}
        self._definition_manager = definition_manager or DefinitionManager()
        self._injector = injector or DefaultInjector(self)
        self._proxy_factory = proxy_factory or LazyProxyFactory()

        # Auto-register the container
        for cls in type(self).__mro__:
            self._entries[self._definition_manager.remember_class(cls)] = self
            if cls is Container:
                break

    def get(self, name: Entry, use_proxy: bool = False) -> Any:
        """Return the entry ``name``, building it if needed.

        Args:
            name: Entry name, or a class (its entry name is used)
            use_proxy: Return a lazy proxy for a class entry that is not
                built yet, even if its definition is not lazy

        Returns:
            The resolved entry

        Raises:
            InvalidArgumentError: When ``name`` is not a non-empty string
                or a class
            NotFoundError: When no entry or definition exists for ``name``
            CircularDependencyError: When building the entry requires a
                class that is still under construction
            DependencyError: When a required dependency cannot be resolved

        Example::

            db = container.get(Database)
            host = container.get("db.host")
        """
        return self._get(self._definition_manager.entry_name(name), use_proxy)

    def has(self, name: Entry) -> bool:
        """Check whether the container can provide ``name``. Never builds anything.

        Raises:
            InvalidArgumentError: When ``name`` is not a non-empty string
                or a class
        """
        name = self._definition_manager.entry_name(name)
        return name in self._entries or self._definition_manager.get_definition(name) is not None

    def __contains__(self, name: Entry) -> bool:
        return self.has(name)

    def inject_on(self, instance: Any) -> Any:
        """Inject properties and methods on an existing instance.

        Constructor injection is skipped. Without a class definition for the
        instance's class, the instance is returned unchanged.

        Args:
            instance: Object to perform injection upon

        Returns:
            The same instance

        Raises:
            DependencyError: When a dependency cannot be resolved
        """
        definition = self._definition_manager.get_definition_for_class(type(instance))
        if isinstance(definition, ClassDefinition):
            instance = self._injector.inject_on_instance(definition, instance)
        return instance

    def set(self, name: Entry, value: Any) -> None:
        """Define an entry, replacing any previous definition and cached instance.

        Args:
            name: Entry name, or a class
            value: A definition helper (create(), factory(), value()), a
                link(), or a raw value. Raw values, callables included, are
                stored as values.

        Example::

            container.set("db.host", "localhost")
            container.set(Mailer, create(SmtpMailer))
        """
        name = self._definition_manager.entry_name(name)
        self._define(self._definition_manager.to_definition(name, value))

    def add_definitions(self, definitions: Mapping[Entry, Any]) -> None:
        """Define entries from a mapping; later definitions of a name win.

        Plain functions and lambdas are registered as factories receiving
        the container; see set() for the other values. An invalid entry
        leaves the container unchanged.
        """
        for definition in self._definition_manager.to_definitions(definitions):
            self._define(definition)

    @property
    def definition_manager(self) -> DefinitionManager:
        return self._definition_manager

    @property
    def injector(self) -> Injector:
        return self._injector

    @injector.setter
    def injector(self, injector: Injector) -> None:
        self._injector = injector

    @property
    def proxy_factory(self) -> LazyProxyFactory:
        return self._proxy_factory

    @proxy_factory.setter
    def proxy_factory(self, proxy_factory: LazyProxyFactory) -> None:
        self._proxy_factory = proxy_factory

    def _define(self, definition: Definition) -> None:
        # Evict and redefine under the entry lock so no construction in
        # progress can cache an instance of the previous definition
        with self._entry_lock(definition.name):
            if self._entries.pop(definition.name, _MISSING) is not _MISSING:
                logger.debug("Evicted cached instance of '%s'", definition.name)
            self._definition_manager.add_definition(definition)

    def _get(self, name: str, use_proxy: bool, aliases: Tuple[str, ...] = ()) -> Any:
        instance = self._entries.get(name, _MISSING)
        if instance is not _MISSING:
            return instance

        definition = self._find_definition(name)
        if not self._is_cached(definition):
            return self._resolve_definition(definition, use_proxy, aliases)

        with self._entry_lock(name) as reentrant:
            instance = self._entries.get(name, _MISSING)
            if instance is not _MISSING:
                return instance

            # The entry may have been redefined while this thread waited
            definition = self._find_definition(name)
            if reentrant and isinstance(definition, ClassDefinition) and (use_proxy or definition.lazy):
                # The entry is being built further up this call chain: the
                # proxy resolves to the instance cached once that finishes
                return self._proxy_factory.create_proxy(
                    definition.cls,
                    lambda: self._get(name, False),
                )
            instance = self._resolve_definition(definition, use_proxy, aliases)
            if self._is_cached(definition):
                self._entries[name] = instance
            return instance

    def _resolve_definition(self, definition: Definition, use_proxy: bool, aliases: Tuple[str, ...]) -> Any:
        if isinstance(definition, ValueDefinition):
            return definition.value

        if isinstance(definition, FactoryDefinition):
            return definition.factory(self)

        if isinstance(definition, AliasDefinition):
            if definition.name in aliases:
                cycle = " -> ".join(aliases + (definition.name,))
                raise CircularDependencyError(
                    f"Circular alias detected for '{definition.name}': {cycle}",
                    cls=definition.name,
                    chain=aliases,
                )
            return self._get(definition.target_name, use_proxy, aliases + (definition.name,))

        if isinstance(definition, ClassDefinition):
            if use_proxy or definition.lazy:
                return self._get_proxy(definition)
            return self._get_new_instance(definition)

        raise NotFoundError(f"No entry or class found for '{definition.name}'", name=definition.name)

    def _get_new_instance(self, definition: ClassDefinition) -> Any:
        """Build an instance of a class definition with the circular guard in place."""
        with instantiating(definition.cls):
            return self._injector.create_instance(definition)

    def _get_proxy(self, definition: ClassDefinition) -> Any:
        return self._proxy_factory.create_proxy(
            definition.cls,
            lambda: self._get_new_instance(definition),
        )

    def _find_definition(self, name: str) -> Definition:
        definition = self._definition_manager.get_definition(name)
        if definition is None:
            defined = ", ".join(self._definition_manager.definition_names()) or "None"
            raise NotFoundError(
                f"No entry or class found for '{name}'.\n"
                f"Defined entries: {defined}",
                name=name,
            )
        return definition

    @staticmethod
    def _is_cached(definition: Definition) -> bool:
        if isinstance(definition, (ValueDefinition, FactoryDefinition)):
            return True
        if isinstance(definition, ClassDefinition):
            return definition.scope is Scope.SINGLETON
        return False

    @contextmanager
    def _entry_lock(self, name: str) -> Iterator[bool]:
        """Hold the lock of the entry ``name``.

        Yields:
            True when this thread already held the lock

        Raises:
            CircularDependencyError: When waiting for the lock could never end
        """
        me = threading.get_ident()
        with self._locks_lock:
            lock = self._locks.setdefault(name, threading.RLock())
            reentrant = self._owners.get(name) == me
            if not reentrant:
                chain = self._wait_chain(name, me)
                if chain is not None:
                    cycle = " -> ".join(chain + (name,))
                    logger.debug("Circular wait detected between threads: %s", cycle)
                    raise CircularDependencyError(
                        f"Circular dependency detected while waiting for entry '{name}', "
                        f"which another thread is building: {cycle}",
                        cls=name,
                        chain=chain,
                    )
                self._waiting[me] = name

        try:
            lock.acquire()
        finally:
            with self._locks_lock:
                self._waiting.pop(me, None)

        with self._locks_lock:
            self._owners[name] = me
        try:
            yield reentrant
        finally:
            if not reentrant:
                with self._locks_lock:
                    del self._owners[name]
            lock.release()

    def _wait_chain(self, name: str, me: int) -> Optional[Tuple[str, ...]]:
        """Return the entries of the wait cycle ``me`` would close by waiting
        for ``name``, or None when there is no such cycle.

        Must be called with ``_locks_lock`` held.
        """
        chain: Tuple[str, ...] = (name,)
        owner = self._owners.get(name)
        seen = set()
        while owner is not None and owner not in seen:
            seen.add(owner)
            waited = self._waiting.get(owner)
            if waited is None:
                return None
            chain += (waited,)
            owner = self._owners.get(waited)
            if owner == me:
                return chain
        return None

    def __repr__(self) -> str:
        return f"<{name_of(type(self))} entries={len(self._entries)}>"
