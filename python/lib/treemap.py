#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
treemap.py
----------

An ordered map from integer ids to positive integer counts, stored in a
**Red‑Black** tree so that every point operation is O(log n) whatever the
order of insertions and deletions.

Features
~~~~~~~~
* `tree.insert(key, count)`     – insert, or add to the count of an existing key
* `tree.delete(key)`            – remove a key (returns False if absent)
* `tree.search(key)`            – node lookup (None if absent)
* `tree.range_sum(low, high)`   – total count over the inclusive key range
* `tree.next_greater(key)`, `tree.previous_less(key)` – strict neighbours
* `tree.min_node()`, `tree.max_node()`, `tree.successor(node)`,
  `tree.predecessor(node)`
* `tree.build_balanced(pairs)`  – O(n) bulk load of presorted data
* `tree.levels()` / `tree.dump()` – level order diagnostic traversal
* `tree.validate()` – sanity‑check that the red‑black invariants hold

As in a classic CLRS tree, a **single shared sentinel node** (`self._nil`)
stands in for every absent child and for the parent of the root.  Every test
against it is an identity test; its key and count are never read.

Children are kept in a two slot list indexed by :class:`Side`, so each
rebalancing case is written once and mirrored by flipping the side.

Typical usage
~~~~~~~~~~~~~
>>> from treemap import TreeMap
>>> tree = TreeMap()
>>> tree.build_balanced([(1, 5), (3, 2), (7, 9)])
1
>>> tree.range_sum(0, 10)
16
>>> tree.next_greater(3).key
7
>>> tree.delete(3)
True
>>> list(tree)
[1, 7]
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from enum import IntEnum
from typing import (
    Generator,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
#  Node colour constants – using simple booleans is fastest
# ----------------------------------------------------------------------
RED = True
BLACK = False


class InputError(ValueError):
    """Raised when a caller passes arguments that would corrupt the map."""


class Side(IntEnum):
    """Index of a child slot; ``side.opposite`` gives the mirror slot."""

    LEFT = 0
    RIGHT = 1

    @property
    def opposite(self) -> "Side":
        return Side(1 - self)


class _Node:
    """Internal node object – not meant to be used directly by callers."""

    __slots__ = ("key", "count", "color", "link", "parent")

    def __init__(
        self,
        key: int,
        count: int,
        color: bool,
        nil: Optional["_Node"] = None,
    ) -> None:
        self.key = key
        self.count = count
        self.color = color
        # A node built without a sentinel *is* the sentinel: it links to itself.
        anchor = self if nil is None else nil
        self.link: List[_Node] = [anchor, anchor]
        self.parent: _Node = anchor

    @property
    def left(self) -> "_Node":
        return self.link[Side.LEFT]

    @left.setter
    def left(self, node: "_Node") -> None:
        self.link[Side.LEFT] = node

    @property
    def right(self) -> "_Node":
        return self.link[Side.RIGHT]

    @right.setter
    def right(self, node: "_Node") -> None:
        self.link[Side.RIGHT] = node

    def __repr__(self) -> str:
        col = "R" if self.color == RED else "B"
        return f"<{col} {self.key!r}:{self.count!r}>"


class TreeMap:
    """
    Ordered ``int -> int`` count map backed by a red‑black tree.

    Keys are unique; every stored count is strictly positive once a public
    operation has returned.  Callers that drive counts to zero are expected
    to :meth:`delete` the key in the same logical step (see
    ``event_counter.EventCounter.reduce``).
    """

    __slots__ = ("_root", "_nil", "_size")

    # ------------------------------------------------------------------
    #   Construction / node store
    # ------------------------------------------------------------------
    def __init__(self) -> None:
        # The sentinel leaf node – shared by every leaf in the tree.
        self._nil: _Node = _Node(0, 0, BLACK)
        self._root: _Node = self._nil
        self._size: int = 0

    def _create_node(self, key: int, count: int, color: bool) -> _Node:
        """Allocate a node whose children (and parent) are the sentinel."""
        return _Node(key, count, color, self._nil)

    def clear(self) -> None:
        """
        Release every real node (post‑order), leaving an empty tree.

        Links of released nodes are cut so that the parent/child cycles do
        not outlive the tree.  The sentinel is kept for reuse.
        """
        if self._root is self._nil:
            return
        pending: List[_Node] = [self._root]
        order: List[_Node] = []
        while pending:
            node = pending.pop()
            order.append(node)
            for child in node.link:
                if child is not self._nil:
                    pending.append(child)
        # reversed pre‑order with children pushed left→right is post‑order
        for node in reversed(order):
            node.link = []
            node.parent = None  # type: ignore[assignment]
        self._root = self._nil
        self._size = 0

    # ------------------------------------------------------------------
    #   Basic container protocol (read only)
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._root is not self._nil

    def __contains__(self, key: object) -> bool:
        return self.search(key) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Generator[int, None, None]:
        """Yield keys in ascending order (in‑order traversal)."""
        for node in self._inorder():
            yield node.key

    def items(self) -> List[Tuple[int, int]]:
        """Return a list of ``(key, count)`` pairs in sorted order."""
        return [(node.key, node.count) for node in self._inorder()]

    def _inorder(self) -> Generator[_Node, None, None]:
        stack: List[_Node] = []
        cur = self._root
        while stack or cur is not self._nil:
            while cur is not self._nil:
                stack.append(cur)
                cur = cur.left
            cur = stack.pop()
            yield cur
            cur = cur.right

    # ------------------------------------------------------------------
    #   Search / min / max / neighbours
    # ------------------------------------------------------------------
    def search(self, key: int) -> Optional[_Node]:
        """Return the node holding *key*, or ``None`` if it is absent."""
        cur = self._root
        while cur is not self._nil:
            if key == cur.key:
                return cur
            cur = cur.left if key < cur.key else cur.right
        return None

    def _minimum(self, node: _Node) -> _Node:
        while node.left is not self._nil:
            node = node.left
        return node

    def _maximum(self, node: _Node) -> _Node:
        while node.right is not self._nil:
            node = node.right
        return node

    def min_node(self) -> Optional[_Node]:
        """Node with the smallest key, ``None`` for an empty tree."""
        if self._root is self._nil:
            return None
        return self._minimum(self._root)

    def max_node(self) -> Optional[_Node]:
        """Node with the largest key, ``None`` for an empty tree."""
        if self._root is self._nil:
            return None
        return self._maximum(self._root)

    def successor(self, node: _Node) -> Optional[_Node]:
        """In‑order successor of *node*, ``None`` if it holds the largest key."""
        if node.right is not self._nil:
            return self._minimum(node.right)
        # Walk up until we leave a left subtree.
        up = node.parent
        while up is not self._nil and node is up.right:
            node = up
            up = up.parent
        return None if up is self._nil else up

    def predecessor(self, node: _Node) -> Optional[_Node]:
        """In‑order predecessor of *node*, ``None`` if it holds the smallest key."""
        if node.left is not self._nil:
            return self._maximum(node.left)
        up = node.parent
        while up is not self._nil and node is up.left:
            node = up
            up = up.parent
        return None if up is self._nil else up

    def _floor(self, key: int) -> _Node:
        """Last node on the search path with a key ``<= key`` (or the sentinel)."""
        best = self._nil
        cur = self._root
        while cur is not self._nil:
            if cur.key <= key:
                best = cur
                cur = cur.right
            else:
                cur = cur.left
        return best

    def _ceiling(self, key: int) -> _Node:
        """Last node on the search path with a key ``>= key`` (or the sentinel)."""
        best = self._nil
        cur = self._root
        while cur is not self._nil:
            if cur.key >= key:
                best = cur
                cur = cur.left
            else:
                cur = cur.right
        return best

    def next_greater(self, key: int) -> Optional[_Node]:
        """Node with the lowest key strictly greater than *key*, else ``None``."""
        lowest = self.min_node()
        if lowest is None:
            return None
        if key < lowest.key:
            return lowest
        # key >= min, so the floor exists; its successor is the answer.
        return self.successor(self._floor(key))

    def previous_less(self, key: int) -> Optional[_Node]:
        """Node with the greatest key strictly less than *key*, else ``None``."""
        highest = self.max_node()
        if highest is None:
            return None
        if key > highest.key:
            return highest
        return self.predecessor(self._ceiling(key))

    # ------------------------------------------------------------------
    #   Range aggregation
    # ------------------------------------------------------------------
    def range_sum(self, low: int, high: int) -> int:
        """
        Total count of all keys in ``[low, high]``.

        Subtrees that lie entirely outside the range are never entered, so
        the cost is O(log n + k) for k keys inside the range.

        Raises
        ------
        InputError
            If ``high < low``.
        """
        if high < low:
            raise InputError(f"range bounds out of order: {low} > {high}")
        total = 0
        pending: List[_Node] = [self._root]
        while pending:
            node = pending.pop()
            if node is self._nil:
                continue
            if low < node.key:
                pending.append(node.left)
            if low <= node.key <= high:
                total += node.count
            if high > node.key:
                pending.append(node.right)
        return total

    # ------------------------------------------------------------------
    #   Left / right rotations – helper primitives
    # ------------------------------------------------------------------
    def _side_of(self, node: _Node) -> Side:
        """Which child slot of its parent *node* occupies."""
        return Side.LEFT if node is node.parent.left else Side.RIGHT

    def _rotate(self, x: _Node, side: Side) -> None:
        """Rotate the subtree rooted at `x` so that `x` moves down to *side*."""
        up = side.opposite
        y = x.link[up]
        if y is self._nil:
            raise RuntimeError(
                f"rotate_{side.name.lower()} called on {x!r} with nil {up.name.lower()} child"
            )
        # Turn y's inner subtree into x's outer subtree
        x.link[up] = y.link[side]
        if y.link[side] is not self._nil:
            y.link[side].parent = x
        # Link x's parent to y
        y.parent = x.parent
        if x.parent is self._nil:
            self._root = y
        else:
            x.parent.link[self._side_of(x)] = y
        # Put x under y
        y.link[side] = x
        x.parent = y

    def _rotate_left(self, x: _Node) -> None:
        self._rotate(x, Side.LEFT)

    def _rotate_right(self, x: _Node) -> None:
        self._rotate(x, Side.RIGHT)

    # ------------------------------------------------------------------
    #   Insertion
    # ------------------------------------------------------------------
    def insert(self, key: int, count: int) -> _Node:
        """
        Add *count* to *key*, inserting a new RED node if the key is absent.

        Returns the node now holding *key*.  Merging into an existing key
        changes no structure, so no fix‑up is needed in that case.

        Raises
        -------
        InputError
            If *count* is not positive.
        """
        if count <= 0:
            raise InputError(f"count for key {key} must be positive, got {count}")
        parent = self._nil
        cur = self._root
        while cur is not self._nil:
            parent = cur
            if key == cur.key:
                cur.count += count
                return cur
            cur = cur.left if key < cur.key else cur.right

        node = self._create_node(key, count, RED)
        node.parent = parent
        if parent is self._nil:
            self._root = node
        elif key < parent.key:
            parent.left = node
        else:
            parent.right = node

        self._size += 1
        self._fix_insert(node)
        return node

    def _fix_insert(self, z: _Node) -> None:
        """Restore red‑black properties after inserting node `z` (which is RED)."""
        while z.parent.color == RED:
            parent = z.parent
            grand = parent.parent
            side = self._side_of(parent)
            uncle = grand.link[side.opposite]
            if uncle.color == RED:
                # Case 1 – recolour and push the violation up
                parent.color = BLACK
                uncle.color = BLACK
                grand.color = RED
                z = grand
                continue
            if z is parent.link[side.opposite]:
                # Case 2 – inner child, rotate into the outer position
                z = parent
                self._rotate(z, side)
                parent = z.parent
            # Case 3 – outer child, rotate the grandparent away from z
            parent.color = BLACK
            grand.color = RED
            self._rotate(grand, side.opposite)
        self._root.color = BLACK

    # ------------------------------------------------------------------
    #   Deletion
    # ------------------------------------------------------------------
    def delete(self, key: int) -> bool:
        """Remove *key*; return ``False`` (and do nothing) if it is absent."""
        node = self.search(key)
        if node is None:
            return False
        self._delete_node(node)
        return True

    def _delete_node(self, node: _Node) -> None:
        """
        Unlink the node carrying `node`'s entry and fix any colour violation.

        A node with two real children takes over its in‑order successor's
        key and count, and the successor (which has at most one real child)
        is the one physically spliced out.
        """
        if node.left is self._nil or node.right is self._nil:
            removed = node
        else:
            removed = self._minimum(node.right)

        child = removed.right if removed.left is self._nil else removed.left
        # The sentinel's parent is set on purpose: the fix‑up walks up from it.
        child.parent = removed.parent
        if removed.parent is self._nil:
            self._root = child
        else:
            removed.parent.link[self._side_of(removed)] = child

        if removed is not node:
            node.key = removed.key
            node.count = removed.count

        self._size -= 1
        if removed.color == BLACK:
            self._fix_delete(child)
        self._nil.parent = self._nil
        removed.link = []
        removed.parent = None  # type: ignore[assignment]

    def _fix_delete(self, x: _Node) -> None:
        """
        Restore red‑black properties after deleting a black node.
        `x` is the node that moved into the removed node's slot (could be `nil`).
        """
        while x is not self._root and x.color == BLACK:
            parent = x.parent
            side = self._side_of(x)
            far = side.opposite
            sibling = parent.link[far]
            if sibling.color == RED:
                # Case 1 – red sibling, rotate to get a black one
                sibling.color = BLACK
                parent.color = RED
                self._rotate(parent, side)
                sibling = parent.link[far]
            if sibling.link[side].color == BLACK and sibling.link[far].color == BLACK:
                # Case 2 – both of sibling's children are black
                sibling.color = RED
                x = parent
                continue
            if sibling.link[far].color == BLACK:
                # Case 3 – near child red, far child black
                sibling.link[side].color = BLACK
                sibling.color = RED
                self._rotate(sibling, far)
                sibling = parent.link[far]
            # Case 4 – far child red
            sibling.color = parent.color
            parent.color = BLACK
            sibling.link[far].color = BLACK
            self._rotate(parent, side)
            x = self._root
        x.color = BLACK

    # ------------------------------------------------------------------
    #   Bulk loading of presorted data
    # ------------------------------------------------------------------
    def build_balanced(self, sorted_pairs: Iterable[Tuple[int, int]]) -> int:
        """
        Build the tree from ``(key, count)`` pairs sorted by ascending key.

        Each sub‑range's middle element becomes the subtree root, which
        yields a height balanced BST in one pass.  Every node starts BLACK
        and the deepest level is then recoloured RED, giving a valid red‑black
        tree without n separate insertions.

        Returns
        -------
        int
            Height of the new tree (root at depth 0; 0 for no pairs).

        Raises
        ------
        RuntimeError
            If the tree already holds entries.
        InputError
            If keys are not strictly ascending or a count is not positive.
        """
        if self._root is not self._nil:
            raise RuntimeError("build_balanced requires an empty tree")

        pairs: Sequence[Tuple[int, int]] = list(sorted_pairs)
        for (prev_key, _), (key, _) in zip(pairs, itertools.islice(pairs, 1, None)):
            if key <= prev_key:
                raise InputError(f"keys must be strictly ascending: {prev_key} then {key}")
        for key, count in pairs:
            if count <= 0:
                raise InputError(f"count for key {key} must be positive, got {count}")

        max_depth = 0

        def build(begin: int, end: int, depth: int) -> _Node:
            nonlocal max_depth
            if begin > end:
                return self._nil
            mid = begin + (end - begin) // 2
            key, count = pairs[mid]
            node = self._create_node(key, count, BLACK)
            max_depth = max(max_depth, depth)
            node.left = build(begin, mid - 1, depth + 1)
            if node.left is not self._nil:
                node.left.parent = node
            node.right = build(mid + 1, end, depth + 1)
            if node.right is not self._nil:
                node.right.parent = node
            return node

        self._root = build(0, len(pairs) - 1, 0)
        self._size = len(pairs)
        self._color_balanced(max_depth)
        logger.debug("bulk loaded %d entries, height %d", self._size, max_depth)
        return max_depth

    def _color_balanced(self, max_depth: int) -> None:
        """Colour every non‑root node on the deepest level RED."""
        if max_depth == 0:
            return

        def walk(node: _Node, depth: int) -> None:
            if node is self._nil:
                return
            walk(node.left, depth + 1)
            if depth == max_depth:
                node.color = RED
            walk(node.right, depth + 1)

        walk(self._root, 0)

    # ------------------------------------------------------------------
    #   Level order dump
    # ------------------------------------------------------------------
    def levels(self) -> Iterator[List[Tuple[int, bool, Optional[int]]]]:
        """
        Yield one list per tree level of ``(key, color, parent_key)`` triples.

        ``parent_key`` is ``None`` for the root.  Each call starts a fresh
        traversal; the tree is not modified.
        """
        if self._root is self._nil:
            return
        level = deque([self._root])
        while level:
            row: List[Tuple[int, bool, Optional[int]]] = []
            for _ in range(len(level)):
                node = level.popleft()
                parent_key = None if node.parent is self._nil else node.parent.key
                row.append((node.key, node.color, parent_key))
                for child in node.link:
                    if child is not self._nil:
                        level.append(child)
            yield row

    def dump(self) -> Iterator[Tuple[int, bool, Optional[int]]]:
        """Flattened :meth:`levels`."""
        return itertools.chain.from_iterable(self.levels())

    # ------------------------------------------------------------------
    #   Validation/checking utilities – useful for debugging
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """
        Verify that the tree satisfies all red‑black and map invariants.
        Raises ``AssertionError`` with a descriptive message if something is broken.
        """
        nil = self._nil
        assert nil.color == BLACK, "Sentinel is not black"
        assert nil.left is nil and nil.right is nil, "Sentinel children do not point to itself"
        assert nil.parent is nil, "Sentinel parent does not point to itself"
        assert self._root.parent is nil, "Root parent is not the sentinel"
        assert self._root.color == BLACK, "Root is not black"

        seen = 0

        def dfs(node: _Node, low: Optional[int], high: Optional[int]) -> int:
            """Return the black height of *node*; raise on the first violation."""
            nonlocal seen
            if node is nil:
                return 1  # leaves count as black height 1 (they are black)
            seen += 1

            assert node.color in (RED, BLACK), f"Node {node.key} has no valid colour"
            assert node.count > 0, f"Node {node.key} has non-positive count {node.count}"
            assert low is None or node.key > low, f"BST property violated at {node.key}"
            assert high is None or node.key < high, f"BST property violated at {node.key}"

            if node.color == RED:
                assert node.left.color == BLACK, f"Red node {node.key} has red left child"
                assert node.right.color == BLACK, f"Red node {node.key} has red right child"

            for child in node.link:
                if child is not nil:
                    assert child.parent is node, f"Parent link of {child.key} is stale"

            left_black = dfs(node.left, low, node.key)
            right_black = dfs(node.right, node.key, high)
            assert left_black == right_black, f"Black-height mismatch at {node.key}"
            return left_black + (1 if node.color == BLACK else 0)

        dfs(self._root, None, None)
        assert seen == self._size, f"Size is {self._size} but {seen} nodes are linked"

    # ------------------------------------------------------------------
    #   Convenience string representation (for debugging)
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"TreeMap({{{items}}})"
