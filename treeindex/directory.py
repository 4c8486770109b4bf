#!/usr/bin/env python3
"""
TreeIndex Dual-Index Directory
==============================

Keeps one entity set under two balanced maps: a primary index by integer
identifier and a secondary index by name. Every directory call leaves the
two indices describing exactly the same entities; a failed mutation is
rolled back before the call returns.

Entities are referenced, never copied or owned. The directory reads two
attributes from them (entity_id and name by default); both must stay
unchanged while the entity is indexed.
"""

import logging
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .balanced_map import BalancedMap
from .errors import InvariantViolation
from .fuzzy import FuzzyMatcher
from .validation import validate_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    """Minimal indexable record"""
    entity_id: int
    name: str


class DualIndexDirectory:
    """
    Directory of entities searchable by id and by name

    Time Complexity:
    - add / remove / search_by_id / search_by_name: O(log n)
    - prefix and id range search: O(log n + k)
    - fuzzy_name_search: O(n * |query| * |name|)
    """

    def __init__(
        self,
        id_of: Callable[[Any], int] = attrgetter('entity_id'),
        name_of: Callable[[Any], str] = attrgetter('name'),
    ):
        """
        Initialize an empty directory

        Args:
            id_of: Reads the integer identifier of an entity
            name_of: Reads the name of an entity
        """
        self.id_of = id_of
        self.name_of = name_of
        self.by_id: BalancedMap[int, Any] = BalancedMap()
        self.by_name: BalancedMap[str, Any] = BalancedMap()

        logger.info("Created dual-index directory")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_entity(self, entity: Any) -> bool:
        """
        Index an entity under its id and its name

        Returns:
            True if added; False for None or when the id or the name is
            already taken (neither index changes in that case)
        """
        if entity is None:
            return False

        entity_id = self.id_of(entity)
        name = self.name_of(entity)

        if entity_id in self.by_id or name in self.by_name:
            logger.debug(f"Rejected entity id={entity_id!r} name={name!r}: already indexed")
            return False

        if not self.by_id.insert(entity_id, entity):
            return False
        if not self.by_name.insert(name, entity):
            self.by_id.remove(entity_id)
            logger.warning(f"Rolled back id index insert for {entity_id!r}: name {name!r} rejected")
            return False

        return True

    def remove_entity(self, key: Union[int, str]) -> bool:
        """Remove by name when given a str, by id otherwise"""
        if isinstance(key, str):
            return self.remove_by_name(key)
        return self.remove_by_id(key)

    def remove_by_id(self, entity_id: int) -> bool:
        entity = self.by_id.find(entity_id)
        if entity is None:
            return False
        self._detach(entity)
        return True

    def remove_by_name(self, name: str) -> bool:
        entity = self.by_name.find(name)
        if entity is None:
            return False
        self._detach(entity)
        return True

    def _detach(self, entity: Any) -> None:
        """Remove an entity found in one index from both indices"""
        entity_id = self.id_of(entity)
        name = self.name_of(entity)

        removed_id = self.by_id.remove(entity_id)
        removed_name = self.by_name.remove(name)
        if removed_id and removed_name:
            return

        # Put back whichever half did go away before reporting the divergence
        if removed_id:
            self.by_id.insert(entity_id, entity)
        if removed_name:
            self.by_name.insert(name, entity)
        logger.error(f"Index divergence while removing id={entity_id!r} name={name!r}")
        raise InvariantViolation(
            f"entity id={entity_id!r} name={name!r} is not present in both indices"
        )

    def migrate(self, entities: Iterable[Any]) -> int:
        """
        Bulk-load entities, keeping the first occurrence of any id or name

        Calling it again with the same entities changes nothing.

        Returns:
            Number of entities actually added
        """
        added = 0
        for entity in entities:
            if self.add_entity(entity):
                added += 1
        logger.info(f"Migrated {added} entities into directory (total {len(self)})")
        return added

    def clear(self) -> None:
        self.by_id.clear()
        self.by_name.clear()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_by_id(self, entity_id: int) -> Optional[Any]:
        return self.by_id.find(entity_id)

    def search_by_name(self, name: str) -> Optional[Any]:
        return self.by_name.find(name)

    def search_by_name_prefix(self, prefix: str) -> List[Any]:
        """
        Entities whose name starts with prefix, in ascending name order

        Every name with the prefix sorts at or after the prefix itself and
        they are contiguous, so the scan starts there and stops at the
        first name without it. An empty prefix matches everything.
        """
        results = []
        for name, entity in self.by_name.iter_from(prefix):
            if not name.startswith(prefix):
                break
            results.append(entity)
        return results

    def get_entities_in_id_range(self, min_id: int, max_id: int) -> List[Any]:
        """Entities with min_id <= id <= max_id in ascending id order"""
        return [entity for _, entity in self.by_id.find_range(min_id, max_id)]

    def fuzzy_name_search(self, query: str, max_distance: int = 2) -> List[Any]:
        """
        Entities whose name is within max_distance edits of query

        Scans every name in ascending order; the tree cannot prune by edit
        distance.
        """
        matcher = FuzzyMatcher(query, max_distance)
        return [entity for _, entity in matcher.filter(self.by_name.traverse())]

    def get_all_sorted(self, by_id: bool = True) -> List[Any]:
        """Every entity ordered by id, or by name when by_id is False"""
        index = self.by_id if by_id else self.by_name
        return index.values()

    # ------------------------------------------------------------------
    # Size, consistency and statistics
    # ------------------------------------------------------------------

    def get_total_count(self) -> int:
        return len(self.by_id)

    def __len__(self) -> int:
        return len(self.by_id)

    def __contains__(self, key: Union[int, str]) -> bool:
        if isinstance(key, str):
            return key in self.by_name
        return key in self.by_id

    def _divergences(self) -> List[str]:
        problems = []
        if len(self.by_id) != len(self.by_name):
            problems.append(f"id index holds {len(self.by_id)} entries, name index {len(self.by_name)}")

        ids_by_id = set()
        for entity_id, entity in self.by_id.traverse():
            if self.id_of(entity) != entity_id:
                problems.append(f"id index key {entity_id!r} holds entity with id {self.id_of(entity)!r}")
            ids_by_id.add(entity_id)

        ids_by_name = set()
        for name, entity in self.by_name.traverse():
            if self.name_of(entity) != name:
                problems.append(f"name index key {name!r} holds entity named {self.name_of(entity)!r}")
            entity_id = self.id_of(entity)
            ids_by_name.add(entity_id)
            if self.by_id.find(entity_id) is not entity:
                problems.append(f"name {name!r} and id {entity_id!r} resolve to different entities")

        only_id = ids_by_id - ids_by_name
        only_name = ids_by_name - ids_by_id
        if only_id:
            problems.append(f"ids only in id index: {sorted(only_id)}")
        if only_name:
            problems.append(f"ids only in name index: {sorted(only_name)}")
        return problems

    def is_consistent(self) -> bool:
        """True when both indices describe the same entity set"""
        return not self._divergences()

    def check_consistency(self) -> None:
        """Raise InvariantViolation describing any index divergence"""
        problems = self._divergences()
        if problems:
            raise InvariantViolation(f"directory indices diverge: {problems[0]}", violations=problems)

    def stats(self) -> Dict[str, Any]:
        """Entity count plus shape information for both indices"""
        result: Dict[str, Any] = {'entities': len(self), 'consistent': self.is_consistent()}
        for label, index in (('id_index', self.by_id), ('name_index', self.by_name)):
            report = validate_tree(index)
            result[label] = {
                'size': len(index),
                'height': report.height,
                'max_depth': report.max_depth,
                'average_depth': round(report.average_depth, 3),
                'valid': report.ok,
            }
        return result

    def log_stats(self) -> None:
        stats = self.stats()
        logger.info(
            f"Directory: {stats['entities']} entities, "
            f"id index height {stats['id_index']['height']}, "
            f"name index height {stats['name_index']['height']}, "
            f"consistent={stats['consistent']}"
        )

    def __repr__(self) -> str:
        return f"DualIndexDirectory(entities={len(self)})"
