#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
event_counter.py
----------------

Event counter built on :class:`treemap.TreeMap`.  Every event id carries a
positive count; ids whose count drops to zero disappear.

Features
~~~~~~~~
* `counter.build_from_sorted(pairs)` – one‑time O(n) load of presorted data
* `counter.increase(id, m)` / `counter.reduce(id, m)` – returns the new count
* `counter.count(id)` – 0 for unknown ids
* `counter.range_sum(id1, id2)` – total count over ``[id1, id2]``
* `counter.next(id)` / `counter.previous(id)` – strict neighbours as
  :class:`Neighbor` tuples, or ``None``
* `counter.levels()` / `counter.dump()` – level order diagnostic view

Unknown ids are never an error.  Only misuse of the arguments raises
:class:`InputError`.

Typical usage
~~~~~~~~~~~~~
>>> from event_counter import EventCounter
>>> counter = EventCounter()
>>> counter.build_from_sorted([(1, 5), (3, 2), (7, 9)])
1
>>> counter.increase(3, 4)
6
>>> counter.reduce(1, 10)
0
>>> counter.next(3)
Neighbor(key=7, count=9)
>>> counter.previous(3) is None
True
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

from treemap import InputError, TreeMap, _Node

__all__ = ["EventCounter", "InputError", "Neighbor"]

logger = logging.getLogger(__name__)


class Neighbor(NamedTuple):
    """An id and its count, as returned by ``next`` / ``previous``."""

    key: int
    count: int


class EventCounter:
    """
    Count map with auto‑insert on increase and auto‑delete on zero.

    The instance owns its tree exclusively and is not thread safe; callers
    sharing it across threads must hold one lock per operation.
    """

    __slots__ = ("_tree", "_loaded")

    def __init__(self, pairs: Optional[Iterable[Tuple[int, int]]] = None) -> None:
        self._tree = TreeMap()
        self._loaded = False
        if pairs is not None:
            self.build_from_sorted(pairs)

    # ------------------------------------------------------------------
    #   Initial load
    # ------------------------------------------------------------------
    def build_from_sorted(self, pairs: Iterable[Tuple[int, int]]) -> int:
        """
        Initialise from ``(id, count)`` pairs sorted by ascending id.

        Must run at most once and before any mutation.  Returns the height
        of the resulting tree.
        """
        if self._loaded or self._tree:
            raise RuntimeError("counter is already populated")
        height = self._tree.build_balanced(pairs)
        self._loaded = True
        logger.info("loaded %d ids, tree height %d", len(self._tree), height)
        return height

    # ------------------------------------------------------------------
    #   Mutations
    # ------------------------------------------------------------------
    def increase(self, key: int, amount: int) -> int:
        """Add *amount* to *key*'s count, inserting it if absent."""
        _check_amount("increase", amount)
        self._loaded = True
        return self._tree.insert(key, amount).count

    def reduce(self, key: int, amount: int) -> int:
        """
        Subtract *amount* from *key*'s count.

        Returns the new count, or 0 when the key was absent or has just been
        removed because its count reached zero or below.
        """
        _check_amount("reduce", amount)
        self._loaded = True
        node = self._tree.search(key)
        if node is None:
            return 0
        remaining = node.count - amount
        if remaining <= 0:
            self._tree.delete(key)
            return 0
        node.count = remaining
        return remaining

    # ------------------------------------------------------------------
    #   Queries
    # ------------------------------------------------------------------
    def count(self, key: int) -> int:
        node = self._tree.search(key)
        return 0 if node is None else node.count

    def range_sum(self, low: int, high: int) -> int:
        """Total count over ids in ``[low, high]``; ``InputError`` if ``high < low``."""
        try:
            return self._tree.range_sum(low, high)
        except InputError:
            logger.debug("rejected range [%d, %d]", low, high)
            raise

    def next(self, key: int) -> Optional[Neighbor]:
        return _neighbor(self._tree.next_greater(key))

    def previous(self, key: int) -> Optional[Neighbor]:
        return _neighbor(self._tree.previous_less(key))

    def levels(self) -> Iterator[List[Tuple[int, bool, Optional[int]]]]:
        return self._tree.levels()

    def dump(self) -> Iterator[Tuple[int, bool, Optional[int]]]:
        return self._tree.dump()

    def items(self) -> List[Tuple[int, int]]:
        return self._tree.items()

    def __len__(self) -> int:
        return len(self._tree)

    def __contains__(self, key: object) -> bool:
        return key in self._tree

    def __repr__(self) -> str:
        return f"EventCounter({dict(self._tree.items())!r})"


def _check_amount(operation: str, amount: int) -> None:
    if amount <= 0:
        logger.debug("rejected %s by %d", operation, amount)
        raise InputError(f"{operation} amount must be positive, got {amount}")


def _neighbor(node: Optional[_Node]) -> Optional[Neighbor]:
    return None if node is None else Neighbor(node.key, node.count)
