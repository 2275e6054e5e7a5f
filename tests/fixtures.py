"""
Test Fixtures

Common test classes used across test modules
"""

import threading
from abc import ABC, abstractmethod

from injectkit import Inject


class Database:
    """Test database class"""

    def __init__(self):
        self.name = "TestDB"


class CacheService:
    """Test cache service"""

    def __init__(self):
        self.cache = {}


class UserRepository:
    """Test repository with dependencies"""

    def __init__(self, db: Database, cache: CacheService):
        self.db = db
        self.cache = cache


class Mailer:
    """Service with builtin-typed parameters and defaults"""

    def __init__(self, host: str = "localhost", port: int = 25):
        self.host = host
        self.port = port


class ServiceWithoutHint:
    """Service with missing type hint - for error testing"""

    def __init__(self, dependency):  # No type hint, no default!
        self.dependency = dependency


class ServiceWithBuiltinHint:
    """Service whose only parameter cannot be guessed"""

    def __init__(self, url: str):
        self.url = url


class CircularA:
    """Half of a circular dependency"""

    def __init__(self, b: 'CircularB'):
        self.b = b


class CircularB:
    """Other half of a circular dependency"""

    def __init__(self, a: CircularA):
        self.a = a


class SelfDependent:
    """Class depending on itself"""

    def __init__(self, other: 'SelfDependent'):
        self.other = other


class Level1:
    """First level of nested dependencies"""
    pass


class Level2:
    """Second level of nested dependencies"""

    def __init__(self, l1: Level1):
        self.l1 = l1


class Level3:
    """Third level of nested dependencies"""

    def __init__(self, l2: Level2):
        self.l2 = l2


class Level4:
    """Fourth level of nested dependencies"""

    def __init__(self, l3: Level3):
        self.l3 = l3


class Controller:
    """Class using field injection"""
    repository: UserRepository = Inject()
    mailer = Inject("mailer")
    cache: CacheService = Inject(lazy=True)


class Configurable:
    """Class using method injection"""

    def __init__(self):
        self.db = None
        self.label = None

    def set_db(self, db: Database):
        self.db = db

    def set_label(self, label: str):
        self.label = label


class Storage(ABC):
    """Abstract interface - never autowired"""

    @abstractmethod
    def save(self, key: str, value: str) -> None:
        pass


class MemoryStorage(Storage):
    """Concrete Storage implementation"""

    def __init__(self):
        self.data = {}

    def save(self, key: str, value: str) -> None:
        self.data[key] = value


class Outer:
    """Holds a nested class, for entry name lookup"""

    class Inner:
        pass


class Heavy:
    """Expensive service counting its constructions"""
    instances = 0
    lock = threading.Lock()

    def __init__(self):
        with Heavy.lock:
            Heavy.instances += 1
        self.items = [1, 2, 3]

    def compute(self):
        return sum(self.items)

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __call__(self, factor):
        return [item * factor for item in self.items]

    def __contains__(self, item):
        return item in self.items


class Broken:
    """Service whose constructor always fails"""

    def __init__(self):
        raise RuntimeError("Broken cannot be built")
