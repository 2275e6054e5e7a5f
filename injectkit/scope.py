"""
Scope Enum

Defines whether a class entry is cached by the container
"""

from enum import Enum


class Scope(Enum):
    """Scope of class entries"""
    SINGLETON = "SINGLETON"
    PROTOTYPE = "PROTOTYPE"
