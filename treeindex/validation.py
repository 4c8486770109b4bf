#!/usr/bin/env python3
"""
Structural validation for ordered maps.

validate_tree() walks a map once and reports every broken invariant it finds:
key ordering, parent back-references, cached heights, the entry count and,
for balanced maps, the AVL balance condition. The checks never mutate the
tree; they exist for tests and diagnostics.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .errors import InvariantViolation


@dataclass
class TreeReport:
    """Result of a validation walk"""
    node_count: int = 0
    height: int = 0
    max_depth: int = 0
    total_depth: int = 0
    order_violations: List[str] = field(default_factory=list)
    balance_violations: List[str] = field(default_factory=list)
    structure_violations: List[str] = field(default_factory=list)

    @property
    def violations(self) -> List[str]:
        return self.order_violations + self.balance_violations + self.structure_violations

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def average_depth(self) -> float:
        if self.node_count == 0:
            return 0.0
        return self.total_depth / self.node_count


def validate_tree(tree: Any, check_balance: bool = True) -> TreeReport:
    """
    Validate an OrderedMap or BalancedMap

    Args:
        tree: Map exposing root, comparator and len()
        check_balance: Also require |height(left) - height(right)| <= 1

    Returns:
        TreeReport describing the tree; report.ok is True when nothing failed.
        Depths are counted from 1 at the root, so max_depth equals the height.
    """
    report = TreeReport()
    report.height = _walk(tree.root, tree.comparator, report, check_balance)

    if report.node_count != len(tree):
        report.structure_violations.append(
            f"size is {len(tree)} but {report.node_count} nodes are reachable"
        )
    return report


def _walk(root, less, report: TreeReport, check_balance: bool) -> int:
    """
    Return the real height of the tree while recording violations

    Post-order walk over an explicit stack; each node is pushed once to be
    checked against its ancestor bounds and again to compare its cached
    height with the real one once both children are measured.
    """
    if root is None:
        return 0

    heights = {}
    # (node, parent, lower bound node, upper bound node, depth, children measured)
    stack = [(root, None, None, None, 1, False)]
    while stack:
        node, parent, lower, upper, depth, measured = stack.pop()

        if measured:
            left_height = heights.pop(id(node.left), 0) if node.left is not None else 0
            right_height = heights.pop(id(node.right), 0) if node.right is not None else 0
            actual = 1 + max(left_height, right_height)
            heights[id(node)] = actual

            if node.height != actual:
                report.structure_violations.append(
                    f"node {node.key!r} caches height {node.height}, real height is {actual}"
                )
            if check_balance and abs(left_height - right_height) > 1:
                report.balance_violations.append(
                    f"node {node.key!r} has balance factor {left_height - right_height}"
                )
            continue

        report.node_count += 1
        report.total_depth += depth
        report.max_depth = max(report.max_depth, depth)

        if lower is not None and not less(lower.key, node.key):
            report.order_violations.append(f"key {node.key!r} is not greater than ancestor {lower.key!r}")
        if upper is not None and not less(node.key, upper.key):
            report.order_violations.append(f"key {node.key!r} is not less than ancestor {upper.key!r}")
        if node.parent is not parent:
            report.structure_violations.append(f"node {node.key!r} has a stale parent reference")

        stack.append((node, parent, lower, upper, depth, True))
        if node.right is not None:
            stack.append((node.right, node, node, upper, depth + 1, False))
        if node.left is not None:
            stack.append((node.left, node, lower, node, depth + 1, False))

    return heights[id(root)]


def assert_valid(tree: Any, check_balance: bool = True, label: Optional[str] = None) -> TreeReport:
    """validate_tree() that raises InvariantViolation on the first failed walk"""
    report = validate_tree(tree, check_balance=check_balance)
    if not report.ok:
        name = label or type(tree).__name__
        raise InvariantViolation(
            f"{name} failed validation with {len(report.violations)} violation(s): {report.violations[0]}",
            violations=report.violations,
        )
    return report
