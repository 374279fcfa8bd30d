"""Storage collaborators for rollups."""

from .repository import HabitRepository, InMemoryHabitStore
from .yaml_store import StoreFormatError, YamlHabitStore

__all__ = [
    "HabitRepository",
    "InMemoryHabitStore",
    "StoreFormatError",
    "YamlHabitStore",
]
