"""Keyed in-memory repositories, one per top-level entity type."""

import uuid
from typing import Generic, Iterator, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def generate_id(prefix: str) -> str:
    """Unique id for the life of the process, e.g. ``inc_3f2a...``."""
    return f"{prefix}_{uuid.uuid4().hex}"


class Repository(Generic[T]):
    """Insertion-ordered map of records keyed by ``record.id``.

    Records are owned here; there is no delete.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._items: dict[str, T] = {}

    def add(self, record: T) -> str:
        if record.id in self._items:
            raise KeyError(f"duplicate {self.kind} id {record.id}")
        self._items[record.id] = record
        return record.id

    def get(self, record_id: str) -> Optional[T]:
        return self._items.get(record_id)

    def values(self) -> list[T]:
        return list(self._items.values())

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))
