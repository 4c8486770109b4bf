#!/usr/bin/env python3
"""
Comparison counting for tree benchmarks.

A ComparisonCounter wraps a strict-weak-order "less than" function and counts
how many times the tree consults it. Pass an instance as the comparator of an
OrderedMap or BalancedMap to measure work per operation.
"""

import operator
from typing import Any, Callable


class ComparisonCounter:
    """Callable comparator that records the number of comparisons made"""

    def __init__(self, less: Callable[[Any, Any], bool] = operator.lt):
        self.less = less
        self.count = 0

    def __call__(self, a: Any, b: Any) -> bool:
        self.count += 1
        return self.less(a, b)

    def reset(self) -> int:
        """Zero the counter and return the value it held"""
        previous = self.count
        self.count = 0
        return previous

    def __repr__(self) -> str:
        return f"ComparisonCounter(count={self.count})"
