"""Database package initialization."""
from .models import (
    Base,
    AppActivity,
    Setting,
    init_database,
)
from .store import KeyValueStore, SqlKeyValueStore

__all__ = [
    'Base',
    'AppActivity',
    'Setting',
    'init_database',
    'KeyValueStore',
    'SqlKeyValueStore',
]
