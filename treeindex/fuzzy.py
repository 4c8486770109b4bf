#!/usr/bin/env python3
"""
Approximate string matching by Levenshtein distance.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple


def edit_distance(a: str, b: str) -> int:
    """
    Minimum number of single-character insertions, deletions and
    substitutions turning a into b.

    Fills the classic (len(a) + 1) x (len(b) + 1) table where cell [i][j]
    is the distance between a[:i] and b[:j].
    """
    rows, cols = len(a) + 1, len(b) + 1
    table = [[0] * cols for _ in range(rows)]

    for i in range(rows):
        table[i][0] = i
    for j in range(cols):
        table[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            substitution = 0 if a[i - 1] == b[j - 1] else 1
            table[i][j] = min(
                table[i - 1][j] + 1,
                table[i][j - 1] + 1,
                table[i - 1][j - 1] + substitution,
            )

    return table[rows - 1][cols - 1]


@dataclass(frozen=True)
class FuzzyMatcher:
    """Matches candidate strings against a query within max_distance edits"""
    query: str
    max_distance: int = 2

    def distance(self, candidate: str) -> int:
        return edit_distance(self.query, candidate)

    def matches(self, candidate: str) -> bool:
        if self.max_distance < 0:
            return False
        # The length gap alone already costs that many insertions/deletions
        if abs(len(candidate) - len(self.query)) > self.max_distance:
            return False
        return self.distance(candidate) <= self.max_distance

    def filter(self, pairs: Iterable[Tuple[str, object]]) -> Iterator[Tuple[str, object]]:
        """Yield the (name, value) pairs whose name matches"""
        for name, value in pairs:
            if self.matches(name):
                yield name, value

    def rank(self, candidates: Iterable[str]) -> List[Tuple[str, int]]:
        """Matching candidates with their distance, closest first"""
        scored = [(c, self.distance(c)) for c in candidates if self.matches(c)]
        return sorted(scored, key=lambda item: (item[1], item[0]))
