#!/usr/bin/env python3
"""
TreeIndex Ordered Map
=====================

An ordered key-value map backed by a binary search tree.

Features:
- insert / remove / find in O(height)
- min / max along the tree spine
- Inclusive range queries with subtree pruning
- Ordered iteration, including iteration from an arbitrary lower bound

Insertion and removal descend iteratively and record the path they took.
The path is then walked bottom-up and every node passes through _restore(),
which only refreshes the cached height here; BalancedMap overrides it to
rebalance as well, and a changed subtree root is re-linked into its parent.

The map is not balanced: inserting already-sorted keys degrades it into a
list. No operation recurses, so a degenerate tree is slow but never runs
out of stack.
"""

import logging
import operator
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

from .errors import EmptyTreeError

logger = logging.getLogger(__name__)

K = TypeVar('K')
V = TypeVar('V')

# Strict-weak-order "less than": comparator(a, b) is True when a sorts before b
Comparator = Callable[[Any, Any], bool]


@dataclass(eq=False)
class TreeNode(Generic[K, V]):
    """
    Node in an ordered map

    A node owns its left and right children. The parent link is a weak
    reference, so dropping a subtree only ever follows child edges.
    Heights are cached: a leaf has height 1, an empty subtree height 0.
    """
    key: K
    value: V
    left: Optional['TreeNode[K, V]'] = field(default=None, repr=False)
    right: Optional['TreeNode[K, V]'] = field(default=None, repr=False)
    height: int = 1
    _parent_ref: Optional[weakref.ref] = field(default=None, init=False, repr=False)

    @property
    def parent(self) -> Optional['TreeNode[K, V]']:
        """Parent node, or None for a root or detached node"""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @parent.setter
    def parent(self, node: Optional['TreeNode[K, V]']) -> None:
        self._parent_ref = weakref.ref(node) if node is not None else None

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def child_count(self) -> int:
        return (self.left is not None) + (self.right is not None)


class OrderedMap(Generic[K, V]):
    """
    Binary search tree map

    Keys are unique under the comparator. Duplicate inserts and removals of
    absent keys are reported through a False return value rather than an
    exception; only min()/max() on an empty map raise (EmptyTreeError).

    Time Complexity (h = tree height):
    - insert / remove / find: O(h)
    - find_range: O(h + k) where k is the number of results
    - in_order_traversal: O(n)
    """

    def __init__(self, comparator: Optional[Comparator] = None):
        """
        Initialize an empty map

        Args:
            comparator: "less than" function over keys. Defaults to operator.lt.
        """
        self.root: Optional[TreeNode[K, V]] = None
        self._size = 0
        self.comparator: Comparator = comparator or operator.lt

        logger.debug(f"Created {type(self).__name__}")

    # ------------------------------------------------------------------
    # Height bookkeeping
    # ------------------------------------------------------------------

    @staticmethod
    def _height(node: Optional[TreeNode]) -> int:
        return node.height if node is not None else 0

    def _update_height(self, node: TreeNode) -> None:
        left = node.left.height if node.left is not None else 0
        right = node.right.height if node.right is not None else 0
        node.height = 1 + (left if left > right else right)

    def _restore(self, node: TreeNode) -> TreeNode:
        """Called on every node of the unwind path; returns the subtree root"""
        self._update_height(node)
        return node

    def _replace_child(self, parent: Optional[TreeNode], old: TreeNode, new: Optional[TreeNode]) -> None:
        """Put new in the slot old occupies under parent (the root slot when parent is None)"""
        if new is not None:
            new.parent = parent
        if parent is None:
            self.root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new

    def _unwind(self, path: List[TreeNode]) -> None:
        """Restore every node on a root-to-leaf path, deepest first"""
        for i in range(len(path) - 1, -1, -1):
            node = path[i]
            subtree = self._restore(node)
            if subtree is not node:
                self._replace_child(path[i - 1] if i > 0 else None, node, subtree)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, key: K, value: V) -> bool:
        """
        Insert a key-value pair

        Returns:
            True if the key was added, False if it was already present
            (the map is left untouched in that case)
        """
        path: List[TreeNode] = []
        node = self.root
        go_left = False
        while node is not None:
            path.append(node)
            if self.comparator(key, node.key):
                go_left = True
                node = node.left
            elif self.comparator(node.key, key):
                go_left = False
                node = node.right
            else:
                logger.debug(f"Rejected duplicate key {key!r}")
                return False

        leaf = TreeNode(key, value)
        if not path:
            self.root = leaf
        else:
            parent = path[-1]
            if go_left:
                parent.left = leaf
            else:
                parent.right = leaf
            leaf.parent = parent

        self._size += 1
        self._unwind(path)
        return True

    def remove(self, key: K) -> bool:
        """
        Remove a key

        A node with two children takes over the key and value of its in-order
        successor, and the successor node is unlinked instead. The unlinked
        node always has at most one child.

        Returns:
            True if the key was found and removed, False otherwise
        """
        path: List[TreeNode] = []
        node = self.root
        while node is not None:
            if self.comparator(key, node.key):
                path.append(node)
                node = node.left
            elif self.comparator(node.key, key):
                path.append(node)
                node = node.right
            else:
                break
        if node is None:
            return False

        if node.left is not None and node.right is not None:
            path.append(node)
            successor = node.right
            while successor.left is not None:
                path.append(successor)
                successor = successor.left
            node.key = successor.key
            node.value = successor.value
            node = successor

        child = node.left if node.left is not None else node.right
        self._replace_child(path[-1] if path else None, node, child)
        node.parent = None

        self._size -= 1
        self._unwind(path)
        return True

    def clear(self) -> None:
        """Drop every entry"""
        self.root = None
        self._size = 0

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _find_node(self, key: K) -> Optional[TreeNode]:
        node = self.root
        while node is not None:
            if self.comparator(key, node.key):
                node = node.left
            elif self.comparator(node.key, key):
                node = node.right
            else:
                return node
        return None

    def find(self, key: K) -> Optional[V]:
        """Return the value stored under key, or None if absent"""
        node = self._find_node(key)
        return node.value if node is not None else None

    def __contains__(self, key: K) -> bool:
        return self._find_node(key) is not None

    @staticmethod
    def _leftmost(node: TreeNode) -> TreeNode:
        while node.left is not None:
            node = node.left
        return node

    @staticmethod
    def _rightmost(node: TreeNode) -> TreeNode:
        while node.right is not None:
            node = node.right
        return node

    def min(self) -> Tuple[K, V]:
        """Return the (key, value) pair with the smallest key"""
        if self.root is None:
            raise EmptyTreeError("cannot take the minimum of an empty map")
        node = self._leftmost(self.root)
        return node.key, node.value

    def max(self) -> Tuple[K, V]:
        """Return the (key, value) pair with the largest key"""
        if self.root is None:
            raise EmptyTreeError("cannot take the maximum of an empty map")
        node = self._rightmost(self.root)
        return node.key, node.value

    # ------------------------------------------------------------------
    # Ordered access
    # ------------------------------------------------------------------

    def find_range(self, min_key: K, max_key: K) -> List[Tuple[K, V]]:
        """
        Collect all entries with min_key <= key <= max_key

        Args:
            min_key: Lower bound (inclusive)
            max_key: Upper bound (inclusive)

        Returns:
            List of (key, value) tuples in ascending key order. Empty when
            min_key sorts after max_key.
        """
        if self.comparator(max_key, min_key):
            return []

        results: List[Tuple[K, V]] = []
        self._collect_range(self.root, min_key, max_key, results)
        return results

    def _collect_range(
        self,
        node: Optional[TreeNode],
        min_key: K,
        max_key: K,
        results: List[Tuple[K, V]]
    ) -> None:
        """Pruned in-order walk with an explicit stack"""
        stack: List[TreeNode] = []
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                # Left subtree only holds keys below node.key
                node = node.left if self.comparator(min_key, node.key) else None
            node = stack.pop()

            if not (self.comparator(node.key, min_key) or self.comparator(max_key, node.key)):
                results.append((node.key, node.value))

            node = node.right if self.comparator(node.key, max_key) else None

    def traverse(self) -> Iterator[Tuple[K, V]]:
        """
        Traverse the map in ascending key order

        Yields:
            (key, value) tuples. The map must not be mutated while iterating.
        """
        stack: List[TreeNode] = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.key, node.value
            node = node.right

    def iter_from(self, key: K) -> Iterator[Tuple[K, V]]:
        """Yield (key, value) tuples in ascending order, starting at the first key >= key"""
        stack: List[TreeNode] = []
        node = self.root
        while node is not None:
            if self.comparator(node.key, key):
                node = node.right
            else:
                stack.append(node)
                node = node.left

        while stack:
            node = stack.pop()
            yield node.key, node.value
            node = node.right
            while node is not None:
                stack.append(node)
                node = node.left

    def in_order_traversal(self) -> List[Tuple[K, V]]:
        """Return every (key, value) pair in ascending key order"""
        return list(self.traverse())

    def keys(self) -> List[K]:
        return [key for key, _ in self.traverse()]

    def values(self) -> List[V]:
        return [value for _, value in self.traverse()]

    def items(self) -> List[Tuple[K, V]]:
        return self.in_order_traversal()

    def __iter__(self) -> Iterator[K]:
        for key, _ in self.traverse():
            yield key

    # ------------------------------------------------------------------
    # Size and shape
    # ------------------------------------------------------------------

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def height(self) -> int:
        """Height of the whole tree (0 when empty)"""
        return self._height(self.root)

    def is_valid_bst(self) -> bool:
        """Check ordering, parent links and cached heights"""
        from .validation import validate_tree
        return validate_tree(self, check_balance=False).ok

    def render(self) -> str:
        """Draw the tree sideways (right subtree on top), one node per line"""
        lines: List[str] = []
        stack: List[Tuple[TreeNode, int]] = []
        node, depth = self.root, 0
        while stack or node is not None:
            while node is not None:
                stack.append((node, depth))
                node, depth = node.right, depth + 1
            node, depth = stack.pop()
            lines.append(f"{'    ' * depth}{node.key!r} (h={node.height})")
            node, depth = node.left, depth + 1
        return "\n".join(lines) if lines else "(empty)"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self._size}, height={self.height()})"
