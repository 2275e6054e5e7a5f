"""
Container Tests

Tests for entry resolution: cache, definition kinds, scopes, aliases,
redefinition, self-registration and inject_on().
"""

import unittest

from injectkit import (
    Container,
    DefinitionManager,
    InvalidArgumentError,
    NotFoundError,
    Scope,
    create,
    factory,
    link,
    name_of,
    value,
)

from conftest import ContainerTestCase, create_container
from fixtures import (
    CacheService,
    Controller,
    Database,
    Level1,
    Level4,
    Mailer,
    UserRepository,
)


class TestValueEntries(ContainerTestCase):
    """Value definitions"""

    def test_get_value(self):
        """A value is returned as-is"""
        self.container.set("db.host", "localhost")
        self.assertEqual(self.container.get("db.host"), "localhost")

    def test_callable_set_as_value(self):
        """set() never turns a raw callable into a factory"""
        handler = lambda: "called"
        self.container.set("handler", handler)
        self.assertIs(self.container.get("handler"), handler)

    def test_value_helper_in_add_definitions(self):
        """value() keeps a function a value in add_definitions()"""
        handler = lambda c: "called"
        self.container.add_definitions({"handler": value(handler)})
        self.assertIs(self.container.get("handler"), handler)

    def test_none_value(self):
        """None is a valid, cached value"""
        self.container.set("nothing", None)
        self.assertIsNone(self.container.get("nothing"))
        self.assertTrue(self.container.has("nothing"))


class TestFactoryEntries(ContainerTestCase):
    """Factory definitions"""

    def test_factory_receives_container(self):
        """The factory is called with the container"""
        received = []
        self.container.set("port", 8080)
        self.container.set("url", factory(
            lambda c: received.append(c) or f"http://localhost:{c.get('port')}"
        ))

        self.assertEqual(self.container.get("url"), "http://localhost:8080")
        self.assertEqual(received, [self.container])

    def test_factory_called_once(self):
        """Factory results are cached"""
        calls = []

        def build(container):
            calls.append(1)
            return object()

        self.container.add_definitions({"service": build})

        first = self.container.get("service")
        second = self.container.get("service")

        self.assertIs(first, second)
        self.assertEqual(len(calls), 1)

    def test_lambda_in_add_definitions_is_factory(self):
        """Plain functions in add_definitions() are factories"""
        self.container.add_definitions({"answer": lambda c: 42})
        self.assertEqual(self.container.get("answer"), 42)

    def test_factory_exception_propagates_and_is_not_cached(self):
        """A failing factory leaves no cached entry"""
        attempts = []

        def flaky(container):
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError("first attempt fails")
            return "connected"

        self.container.set("connection", factory(flaky))

        with self.assertRaises(ConnectionError):
            self.container.get("connection")
        self.assertEqual(self.container.get("connection"), "connected")


class TestClassEntries(ContainerTestCase):
    """Class definitions and autowiring"""

    def test_autowired_class(self):
        """An undefined class is built through its constructor hints"""
        repository = self.container.get(UserRepository)

        self.assertIsInstance(repository, UserRepository)
        self.assertIsInstance(repository.db, Database)
        self.assertIsInstance(repository.cache, CacheService)

    def test_get_by_entry_name(self):
        """A class can be requested by its dotted entry name"""
        db = self.container.get(name_of(Database))
        self.assertIsInstance(db, Database)
        self.assertIs(db, self.container.get(Database))

    def test_singleton_is_default(self):
        """Class entries are singletons by default"""
        first = self.container.get(Database)
        second = self.container.get(Database)
        self.assertIs(first, second)

    def test_dependencies_are_shared_singletons(self):
        """Injected dependencies are the cached singletons"""
        repository = self.container.get(UserRepository)
        self.assertIs(repository.db, self.container.get(Database))

    def test_prototype_returns_fresh_instances(self):
        """Prototype entries are built on every request"""
        self.container.set(Database, create().scope(Scope.PROTOTYPE))

        first = self.container.get(Database)
        second = self.container.get(Database)

        self.assertIsInstance(first, Database)
        self.assertIsNot(first, second)

    def test_prototype_dependency_differs_per_consumer(self):
        """Each consumer of a prototype entry gets its own instance"""
        self.container.set(Database, create().scope(Scope.PROTOTYPE))
        self.container.set(UserRepository, create().scope(Scope.PROTOTYPE))

        first = self.container.get(UserRepository)
        second = self.container.get(UserRepository)

        self.assertIsNot(first.db, second.db)
        self.assertIs(first.cache, second.cache)

    def test_named_class_entry(self):
        """A class definition can be registered under any name"""
        self.container.set("mailer.smtp", create(Mailer).constructor(host="smtp.local"))

        mailer = self.container.get("mailer.smtp")

        self.assertIsInstance(mailer, Mailer)
        self.assertEqual(mailer.host, "smtp.local")
        self.assertEqual(mailer.port, 25)

    def test_deeply_nested_dependencies(self):
        """Nested dependencies are resolved transitively"""
        level4 = self.container.get(Level4)
        self.assertIs(level4.l3.l2.l1, self.container.get(Level1))

    def test_failed_construction_is_retried(self):
        """No instance is cached when construction fails"""
        attempts = []

        class Flaky:
            def __init__(self):
                attempts.append(1)
                if len(attempts) == 1:
                    raise RuntimeError("first attempt fails")

        with self.assertRaises(RuntimeError):
            self.container.get(Flaky)

        self.assertIsInstance(self.container.get(Flaky), Flaky)
        self.assertEqual(len(attempts), 2)


class TestAliases(ContainerTestCase):
    """Alias definitions"""

    def test_alias_resolves_target(self):
        """An alias returns the same object as its target"""
        self.container.set("storage.default", create(Database))
        self.container.set("storage", link("storage.default"))

        self.assertIs(self.container.get("storage"), self.container.get("storage.default"))

    def test_alias_chain_cached_under_target_only(self):
        """Only the final target of an alias chain is cached"""
        self.container.set("b", create(Database))
        self.container.set("a", link("b"))
        self.container.set("c", link("a"))

        instance = self.container.get("c")

        self.assertIs(instance, self.container.get("b"))
        self.assertIn("b", self.container._entries)
        self.assertNotIn("a", self.container._entries)
        self.assertNotIn("c", self.container._entries)

    def test_alias_to_class(self):
        """link() accepts classes"""
        self.container.set("db", link(Database))
        self.assertIs(self.container.get("db"), self.container.get(Database))

    def test_alias_follows_redefined_target(self):
        """An alias always reflects the current target definition"""
        self.container.set("target", 1)
        self.container.set("alias", link("target"))
        self.assertEqual(self.container.get("alias"), 1)

        self.container.set("target", 2)
        self.assertEqual(self.container.get("alias"), 2)

    def test_alias_to_missing_entry(self):
        """An alias to an undefined entry fails with NotFoundError"""
        self.container.set("alias", link("missing"))
        with self.assertRaises(NotFoundError):
            self.container.get("alias")


class TestRedefinition(ContainerTestCase):
    """set() replaces definitions and cached instances"""

    def test_set_evicts_cached_value(self):
        """The previous cached value is never returned after set()"""
        self.container.set("x", 1)
        self.assertEqual(self.container.get("x"), 1)

        self.container.set("x", 2)
        self.assertEqual(self.container.get("x"), 2)

    def test_set_evicts_cached_singleton(self):
        """Redefining a class entry drops its cached instance"""
        first = self.container.get(Database)
        self.container.set(Database, create())
        second = self.container.get(Database)

        self.assertIsNot(first, second)

    def test_set_replaces_instance(self):
        """set() with an instance makes the container return it"""
        db = Database()
        self.container.set(Database, db)
        self.assertIs(self.container.get(UserRepository).db, db)

    def test_add_definitions_last_wins(self):
        """The last definition of a name wins"""
        self.container.add_definitions({"x": 1})
        self.container.add_definitions({"x": 2})
        self.assertEqual(self.container.get("x"), 2)

    def test_add_definitions_invalid_entry_changes_nothing(self):
        """A mapping with an invalid key is rejected as a whole"""
        self.container.set("x", 1)
        self.container.get("x")

        with self.assertRaises(InvalidArgumentError):
            self.container.add_definitions({"x": 2, "": 3})

        self.assertEqual(self.container.get("x"), 1)

    def test_add_definitions_evicts_cache(self):
        """add_definitions() also evicts cached instances"""
        self.container.add_definitions({"x": 1})
        self.container.get("x")
        self.container.add_definitions({"x": 3})
        self.assertEqual(self.container.get("x"), 3)


class TestHas(ContainerTestCase):
    """has() and the in operator"""

    def test_has_defined_entry(self):
        self.container.set("x", 1)
        self.assertTrue(self.container.has("x"))
        self.assertIn("x", self.container)

    def test_has_missing_entry(self):
        """has() returns False for missing names without raising"""
        self.assertFalse(self.container.has("DoesNotExist"))
        self.assertNotIn("DoesNotExist", self.container)

    def test_has_autowirable_class(self):
        self.assertTrue(self.container.has(Database))

    def test_has_does_not_build(self):
        """has() never triggers construction"""
        built = []
        self.container.set("service", factory(lambda c: built.append(1)))

        self.assertTrue(self.container.has("service"))
        self.assertEqual(built, [])


class TestNames(ContainerTestCase):
    """Entry name validation"""

    def test_missing_entry_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.container.get("DoesNotExist")
        self.assertEqual(ctx.exception.name, "DoesNotExist")

    def test_invalid_names(self):
        """Names must be non-empty strings or classes"""
        for name in (None, 42, "", Database()):
            with self.subTest(name=name):
                with self.assertRaises(InvalidArgumentError):
                    self.container.get(name)
                with self.assertRaises(InvalidArgumentError):
                    self.container.has(name)

    def test_invalid_name_in_set(self):
        with self.assertRaises(InvalidArgumentError):
            self.container.set(3.14, "pi")


class TestSelfRegistration(ContainerTestCase):
    """The container provides itself"""

    def test_container_resolves_itself(self):
        self.assertIs(self.container.get(Container), self.container)
        self.assertIs(self.container.get("injectkit.container.Container"), self.container)

    def test_subclass_registered_under_both_names(self):
        class AppContainer(Container):
            pass

        container = AppContainer()

        self.assertIs(container.get(AppContainer), container)
        self.assertIs(container.get(Container), container)

    def test_container_injected_into_constructor(self):
        class NeedsContainer:
            def __init__(self, container: Container):
                self.container = container

        self.assertIs(self.container.get(NeedsContainer).container, self.container)


class TestInjectOn(ContainerTestCase):
    """inject_on() on existing instances"""

    def test_inject_on_fills_fields(self):
        """Inject fields are filled and the same instance is returned"""
        self.container.set("mailer", create(Mailer))
        controller = Controller()

        result = self.container.inject_on(controller)

        self.assertIs(result, controller)
        self.assertIs(controller.repository, self.container.get(UserRepository))
        self.assertIsInstance(controller.mailer, Mailer)

    def test_inject_on_uses_definition_properties(self):
        """Property overrides of the class definition are applied"""
        self.container.set("mailer", create(Mailer))
        self.container.set(Controller, create().property("mailer", "fake-mailer"))
        controller = self.container.inject_on(Controller())
        self.assertEqual(controller.mailer, "fake-mailer")

    def test_inject_on_skips_constructor(self):
        """The constructor is not called again"""
        mailer = Mailer(host="custom")
        self.container.set(Mailer, create().constructor(host="from-definition"))

        self.assertIs(self.container.inject_on(mailer), mailer)
        self.assertEqual(mailer.host, "custom")

    def test_inject_on_without_definition_is_noop(self):
        """Without a class definition the instance is returned unchanged"""
        container = create_container(use_autowiring=False)
        controller = Controller()

        self.assertIs(container.inject_on(controller), controller)
        with self.assertRaises(AttributeError):
            controller.repository

    def test_inject_on_with_value_definition_is_noop(self):
        """A non-class definition for the class name is ignored"""
        self.container.set(Controller, "not a class definition")
        controller = Controller()

        self.assertIs(self.container.inject_on(controller), controller)
        self.assertNotIn("repository", vars(controller))


class TestCollaborators(unittest.TestCase):
    """Collaborator accessors"""

    def test_default_collaborators(self):
        container = Container()
        self.assertIsInstance(container.definition_manager, DefinitionManager)
        self.assertTrue(container.definition_manager.use_autowiring)
        self.assertIsNotNone(container.injector)
        self.assertIsNotNone(container.proxy_factory)

    def test_custom_definition_manager(self):
        manager = DefinitionManager(use_autowiring=False)
        container = Container(definition_manager=manager)

        self.assertIs(container.definition_manager, manager)
        with self.assertRaises(NotFoundError):
            container.get(Database)


if __name__ == '__main__':
    unittest.main()
