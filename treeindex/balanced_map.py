#!/usr/bin/env python3
"""
TreeIndex Balanced Map
======================

AVL flavour of OrderedMap. Insertion and removal use the same path-recording
skeleton; the only change is that every node on the unwind path is
rebalanced after its height is refreshed, so the tree height stays within
about 1.44 * log2(n).

Properties:
- height(node) == 1 + max(height(left), height(right))
- |height(left) - height(right)| <= 1 at every node

Time Complexity:
- insert / remove / find: O(log n)
- find_range: O(log n + k) where k is the number of results
"""

import logging
from typing import Optional

from .ordered_map import K, V, OrderedMap, TreeNode
from .validation import assert_valid, validate_tree

logger = logging.getLogger(__name__)


class BalancedMap(OrderedMap[K, V]):
    """
    Height-balanced (AVL) ordered map

    Rotations return the new subtree root; the unwind loop stores that root
    in the parent's child slot. They only touch the node being
    rotated, the child taking its place and the grandchild that changes
    sides.
    """

    @classmethod
    def balance_factor(cls, node: Optional[TreeNode]) -> int:
        """Left subtree height minus right subtree height (0 for None)"""
        if node is None:
            return 0
        return cls._height(node.left) - cls._height(node.right)

    def _restore(self, node: TreeNode) -> TreeNode:
        self._update_height(node)
        return self.rebalance(node)

    def rebalance(self, node: TreeNode) -> TreeNode:
        """Restore |balance factor| <= 1 at node and return the subtree root"""
        bf = self.balance_factor(node)

        if bf > 1:
            if self.balance_factor(node.left) >= 0:
                return self.rotate_right(node)
            return self.rotate_left_right(node)

        if bf < -1:
            if self.balance_factor(node.right) <= 0:
                return self.rotate_left(node)
            return self.rotate_right_left(node)

        return node

    # ------------------------------------------------------------------
    # Rotations
    # ------------------------------------------------------------------

    def rotate_left(self, node: TreeNode) -> TreeNode:
        """
        Promote node.right

              node                pivot
             /    \\              /     \\
            a    pivot   ->    node     c
                 /   \\        /    \\
                b     c       a      b
        """
        pivot = node.right
        displaced = pivot.left

        pivot.left = node
        node.right = displaced

        pivot.parent = node.parent
        if displaced is not None:
            displaced.parent = node
        node.parent = pivot

        self._update_height(node)
        self._update_height(pivot)
        logger.debug(f"Rotated left at {node.key!r}")
        return pivot

    def rotate_right(self, node: TreeNode) -> TreeNode:
        """Promote node.left (mirror image of rotate_left)"""
        pivot = node.left
        displaced = pivot.right

        pivot.right = node
        node.left = displaced

        pivot.parent = node.parent
        if displaced is not None:
            displaced.parent = node
        node.parent = pivot

        self._update_height(node)
        self._update_height(pivot)
        logger.debug(f"Rotated right at {node.key!r}")
        return pivot

    def rotate_left_right(self, node: TreeNode) -> TreeNode:
        """Left child is right-heavy: rotate it left, then rotate node right"""
        node.left = self.rotate_left(node.left)
        return self.rotate_right(node)

    def rotate_right_left(self, node: TreeNode) -> TreeNode:
        """Right child is left-heavy: rotate it right, then rotate node left"""
        node.right = self.rotate_right(node.right)
        return self.rotate_left(node)

    # ------------------------------------------------------------------
    # Validation and statistics
    # ------------------------------------------------------------------

    def is_balanced(self) -> bool:
        """True when every node satisfies the AVL balance condition"""
        return not validate_tree(self, check_balance=True).balance_violations

    def is_valid_avl(self) -> bool:
        """Ordering, links, cached heights and balance all hold"""
        return validate_tree(self, check_balance=True).ok

    def check_invariants(self) -> None:
        """Raise InvariantViolation if any structural invariant is broken"""
        assert_valid(self, check_balance=True)

    def max_depth(self) -> int:
        """Depth of the deepest node, counting the root as depth 1"""
        return validate_tree(self, check_balance=False).max_depth

    def average_depth(self) -> float:
        """Mean node depth, counting the root as depth 1 (0.0 when empty)"""
        return validate_tree(self, check_balance=False).average_depth
