"""
Test Configuration and Utilities

Common base classes and helper functions for injectkit tests
"""

import os
import sys
import unittest
from typing import Any, Mapping, Optional

# Add tests directory to path for local imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from injectkit import Container, DefinitionManager


class ContainerTestCase(unittest.TestCase):
    """
    Base test case class for injectkit tests.

    Creates a fresh autowiring container before each test.
    """

    def setUp(self):
        """Create a fresh container before each test"""
        self.container = Container()


def create_container(
    definitions: Optional[Mapping[Any, Any]] = None,
    use_autowiring: bool = True
) -> Container:
    """
    Create a container with the given definitions.

    Args:
        definitions: Definitions passed to add_definitions()
        use_autowiring: Whether undefined class names are autowired

    Returns:
        A new Container

    Example:
        >>> container = create_container({"db.host": "localhost"})
        >>> container.get("db.host")
        'localhost'
    """
    container = Container(DefinitionManager(use_autowiring=use_autowiring))
    if definitions:
        container.add_definitions(definitions)
    return container
