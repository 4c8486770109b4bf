#!/usr/bin/env python3
"""
Tree Balancing Benchmark
========================

Counts comparator calls per operation for the plain OrderedMap and the
AVL-balanced BalancedMap, for random and already-sorted insertion orders.
Sorted input turns the plain tree into a list; the balanced tree stays
logarithmic.
"""

import time
import random
import statistics
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from treeindex import BalancedMap, ComparisonCounter, DualIndexDirectory, Entity, OrderedMap

# Sorted insertion into OrderedMap is quadratic
SORTED_SIZES = [100, 1000, 2000]
RANDOM_SIZES = [1000, 10000]


def build(map_type, keys):
    """Insert keys into a fresh map; return (map, counter, comparisons per insert)"""
    counter = ComparisonCounter()
    tree = map_type(comparator=counter)
    for key in keys:
        tree.insert(key, key)
    return tree, counter, counter.count / max(len(keys), 1)


def lookups_per_query(tree, counter, probes):
    counter.reset()
    for key in probes:
        tree.find(key)
    return counter.count / max(len(probes), 1)


def benchmark_insertion_order(sizes, ordered: bool):
    label = "SORTED" if ordered else "RANDOM"
    print("\n" + "=" * 70)
    print(f"{label} INSERTION ORDER")
    print("=" * 70)

    for size in sizes:
        keys = list(range(size))
        if not ordered:
            random.shuffle(keys)
        probes = random.sample(keys, min(100, size))

        print(f"\nDataset: {size:,} keys")
        print("-" * 70)
        for map_type in (OrderedMap, BalancedMap):
            start = time.time()
            tree, counter, per_insert = build(map_type, keys)
            elapsed = (time.time() - start) * 1000
            per_lookup = lookups_per_query(tree, counter, probes)
            print(f"  {map_type.__name__:<12} height {tree.height():>5}  "
                  f"{per_insert:8.1f} cmp/insert  {per_lookup:8.1f} cmp/lookup  {elapsed:9.2f} ms")


def benchmark_directory(size: int = 5000):
    print("\n" + "=" * 70)
    print("DIRECTORY SEARCHES")
    print("=" * 70)

    directory = DualIndexDirectory()
    directory.migrate(Entity(i, f"user{i}") for i in range(size))

    timings = {}
    for label, run in (
        ("search_by_id", lambda: directory.search_by_id(random.randrange(size))),
        ("search_by_name", lambda: directory.search_by_name(f"user{random.randrange(size)}")),
        ("prefix 'user12'", lambda: directory.search_by_name_prefix("user12")),
        ("id range 100 wide", lambda: directory.get_entities_in_id_range(1000, 1100)),
        ("fuzzy 'usr42' <= 1", lambda: directory.fuzzy_name_search("usr42", 1)),
    ):
        samples = []
        for _ in range(20):
            start = time.time()
            run()
            samples.append((time.time() - start) * 1000)
        timings[label] = statistics.mean(samples)

    print(f"\nDirectory with {size:,} entities")
    print("-" * 70)
    for label, avg in timings.items():
        print(f"  {label:<22} {avg:9.4f} ms average")


def main():
    """Run all benchmarks"""
    print("=" * 70)
    print("TreeIndex Balancing Benchmark")
    print("=" * 70)

    benchmark_insertion_order(RANDOM_SIZES, ordered=False)
    benchmark_insertion_order(SORTED_SIZES, ordered=True)
    benchmark_directory()

    print("\n" + "=" * 70)
    print("Benchmark Complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
