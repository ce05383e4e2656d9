"""
RestRole - Text Set Column Type

Stores a set of strings as a sorted JSON list and loads it back as a set.
"""

from typing import Iterable, Optional, Set

from sqlalchemy import JSON
from sqlalchemy.types import TypeDecorator


class TextSet(TypeDecorator):
    """
    set<text> column - JSON list on disk, Python set in memory
    """
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Optional[Iterable[str]], dialect):
        if value is None:
            return None
        return sorted(set(value))

    def process_result_value(self, value, dialect) -> Optional[Set[str]]:
        if value is None:
            return None
        return set(value)
