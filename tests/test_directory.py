#!/usr/bin/env python3
"""
Unit Tests for the Dual-Index Directory
=======================================

Adding, removing and searching entities, plus checks that the id and
name indices never drift apart.
"""

import json
import random

import pytest

from treeindex import ConfigurationError, DualIndexDirectory, Entity, InvariantViolation
from treeindex.loader import load_entities, seed_directory


def verify(directory, expected):
    """Directory holds exactly the expected entities in two valid AVL trees"""
    assert directory.get_total_count() == len(expected)
    assert set(directory.by_id.keys()) == {e.entity_id for e in expected}
    assert set(directory.by_name.keys()) == {e.name for e in expected}
    directory.by_id.check_invariants()
    directory.by_name.check_invariants()
    directory.check_consistency()
    assert directory.is_consistent()


@pytest.mark.unit
class TestDirectoryAdd:
    """Populating the directory"""

    def test_add_unique(self, empty_directory, user_pool):
        for entity in user_pool[:6]:
            assert empty_directory.add_entity(entity) is True
        verify(empty_directory, user_pool[:6])

    def test_add_duplicate_id(self, empty_directory, user_pool):
        empty_directory.add_entity(user_pool[0])
        assert empty_directory.add_entity(Entity(0, "newUser")) is False
        assert empty_directory.search_by_name("newUser") is None
        verify(empty_directory, user_pool[:1])

    def test_add_duplicate_name(self, empty_directory, user_pool):
        empty_directory.add_entity(user_pool[0])
        assert empty_directory.add_entity(Entity(999, "user0")) is False
        assert empty_directory.search_by_id(999) is None
        verify(empty_directory, user_pool[:1])

    def test_add_none(self, populated_directory, user_pool):
        assert populated_directory.add_entity(None) is False
        verify(populated_directory, user_pool[:100])

    def test_add_many(self, empty_directory, user_pool):
        for entity in user_pool[:100]:
            assert empty_directory.add_entity(entity)
        verify(empty_directory, user_pool[:100])

    def test_failed_second_insert_rolls_back(self, empty_directory, monkeypatch):
        """If the name index refuses the entity, the id index insert is undone"""
        empty_directory.add_entity(Entity(1, "alice"))
        monkeypatch.setattr(empty_directory.by_name, "insert", lambda key, value: False)

        assert empty_directory.add_entity(Entity(2, "bob")) is False
        assert empty_directory.search_by_id(2) is None
        assert len(empty_directory) == 1
        assert empty_directory.is_consistent()


@pytest.mark.unit
class TestDirectoryMigrate:
    """Bulk loading"""

    def test_migrate_empty(self, empty_directory):
        assert empty_directory.migrate([]) == 0
        verify(empty_directory, [])

    def test_migrate_is_idempotent(self, empty_directory, user_pool):
        assert empty_directory.migrate(user_pool[:10]) == 10
        assert empty_directory.migrate(user_pool[:10]) == 0
        verify(empty_directory, user_pool[:10])

    def test_migrate_duplicate_id_keeps_first(self, empty_directory):
        added = empty_directory.migrate([Entity(1, "userA"), Entity(2, "userB"), Entity(1, "userC_dupID")])
        assert added == 2
        assert empty_directory.search_by_id(1).name == "userA"
        assert empty_directory.search_by_name("userC_dupID") is None

    def test_migrate_duplicate_name_keeps_first(self, empty_directory):
        added = empty_directory.migrate([Entity(1, "userA"), Entity(2, "userB"), Entity(3, "userA")])
        assert added == 2
        assert empty_directory.search_by_name("userA").entity_id == 1
        assert empty_directory.search_by_id(3) is None

    def test_migrate_skips_none(self, empty_directory):
        assert empty_directory.migrate([Entity(1, "a"), None, Entity(2, "b")]) == 2


@pytest.mark.unit
class TestDirectoryRemove:
    """Removing entities"""

    def test_remove_by_id(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:10])
        assert empty_directory.remove_by_id(9) is True
        assert empty_directory.search_by_id(9) is None
        assert empty_directory.search_by_name("user9") is None
        verify(empty_directory, user_pool[:9])

    def test_remove_by_name(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:10])
        assert empty_directory.remove_by_name("user5") is True
        assert empty_directory.search_by_name("user5") is None
        assert empty_directory.search_by_id(5) is None
        verify(empty_directory, user_pool[:5] + user_pool[6:10])

    def test_remove_entity_dispatches_on_type(self, alice_directory):
        assert alice_directory.remove_entity("bob") is True
        assert alice_directory.remove_entity(3) is True
        assert [e.name for e in alice_directory.get_all_sorted()] == ["alice"]

    def test_remove_missing(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:5])
        assert empty_directory.remove_by_id(999) is False
        assert empty_directory.remove_by_name("nobody") is False
        verify(empty_directory, user_pool[:5])

    def test_remove_from_empty(self, empty_directory):
        assert empty_directory.remove_entity(1) is False

    def test_remove_and_readd(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:10])
        empty_directory.remove_by_id(5)
        assert empty_directory.add_entity(user_pool[5]) is True
        verify(empty_directory, user_pool[:10])

    def test_remove_id_tree_root(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[50:100])
        root_id = empty_directory.by_id.root.key
        assert empty_directory.remove_by_id(root_id)
        verify(empty_directory, [e for e in user_pool[50:100] if e.entity_id != root_id])

    def test_remove_all(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:10])
        for i in range(10):
            assert empty_directory.remove_entity(i)
        verify(empty_directory, [])

    def test_divergent_indices_raise_and_restore(self, alice_directory):
        """Removal of an entity missing from one index reports the corruption"""
        bob = alice_directory.search_by_id(2)
        alice_directory.by_name.remove("bob")
        assert not alice_directory.is_consistent()

        with pytest.raises(InvariantViolation):
            alice_directory.remove_by_id(2)
        assert alice_directory.search_by_id(2) is bob


@pytest.mark.unit
class TestDirectorySearch:
    """Exact, prefix, range and fuzzy search"""

    def test_search_hit(self, populated_directory):
        by_id = populated_directory.search_by_id(50)
        by_name = populated_directory.search_by_name("user50")
        assert by_id is not None
        assert by_id is by_name

    def test_search_miss(self, populated_directory):
        assert populated_directory.search_by_id(999) is None
        assert populated_directory.search_by_name("user999") is None

    def test_prefix_multiple(self, populated_directory):
        results = populated_directory.search_by_name_prefix("user1")
        assert len(results) == 11
        assert results[0].name == "user1"
        assert results[1].name == "user10"
        assert results[-1].name == "user19"

    def test_prefix_no_match(self, populated_directory):
        assert populated_directory.search_by_name_prefix("xyz") == []

    def test_prefix_empty_matches_all(self, populated_directory):
        results = populated_directory.search_by_name_prefix("")
        assert len(results) == 100
        assert [e.name for e in results] == sorted(e.name for e in results)

    def test_prefix_exact_name(self, alice_directory):
        assert [e.name for e in alice_directory.search_by_name_prefix("alicia")] == ["alicia"]

    def test_id_range(self, populated_directory):
        results = populated_directory.get_entities_in_id_range(15, 20)
        assert [e.entity_id for e in results] == [15, 16, 17, 18, 19, 20]

    def test_id_range_full(self, populated_directory):
        assert len(populated_directory.get_entities_in_id_range(-100, 1000)) == 100

    def test_id_range_single(self, populated_directory):
        results = populated_directory.get_entities_in_id_range(50, 50)
        assert len(results) == 1 and results[0].entity_id == 50

    def test_id_range_inverted(self, populated_directory):
        assert populated_directory.get_entities_in_id_range(60, 50) == []

    def test_get_all_sorted(self, empty_directory, user_pool):
        empty_directory.migrate(reversed(user_pool[:12]))
        by_id = empty_directory.get_all_sorted(by_id=True)
        by_name = empty_directory.get_all_sorted(by_id=False)
        assert [e.entity_id for e in by_id] == list(range(12))
        assert [e.name for e in by_name][:4] == ["user0", "user1", "user10", "user11"]

    def test_fuzzy_search(self, empty_directory, user_pool):
        empty_directory.add_entity(user_pool[1])
        for entity in (Entity(100, "userx"), Entity(101, "uer1"), Entity(102, "uxer")):
            empty_directory.add_entity(entity)
        results = empty_directory.fuzzy_name_search("user1", 1)
        assert {e.entity_id for e in results} == {1, 100, 101}

    def test_fuzzy_no_match(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:10])
        assert empty_directory.fuzzy_name_search("xyz", 1) == []

    def test_fuzzy_negative_distance(self, alice_directory):
        assert alice_directory.fuzzy_name_search("alice", -1) == []

    def test_fuzzy_results_in_name_order(self, alice_directory):
        results = alice_directory.fuzzy_name_search("alicx", 2)
        assert [e.name for e in results] == ["alice", "alicia"]


@pytest.mark.unit
class TestDirectoryScenarios:
    """The alice / bob / alicia walkthrough"""

    def test_prefix_and_fuzzy(self, alice_directory):
        assert [e.name for e in alice_directory.search_by_name_prefix("ali")] == ["alice", "alicia"]
        # alicx -> alice is one substitution; alicx -> alicia needs two edits
        assert [e.entity_id for e in alice_directory.fuzzy_name_search("alicx", 1)] == [1]
        assert [e.entity_id for e in alice_directory.fuzzy_name_search("alicx", 2)] == [1, 3]

    def test_remove_keeps_consistency(self, alice_directory):
        assert alice_directory.remove_entity(2)
        assert alice_directory.is_consistent()
        assert alice_directory.search_by_id(2) is None
        assert alice_directory.get_total_count() == 2


@pytest.mark.unit
class TestDirectoryRecords:
    """Custom record types and accessors"""

    def test_dict_records(self):
        directory = DualIndexDirectory(id_of=lambda r: r["id"], name_of=lambda r: r["login"])
        assert directory.add_entity({"id": 7, "login": "grace"})
        assert directory.add_entity({"id": 3, "login": "ada"})
        assert directory.search_by_name("ada")["id"] == 3
        assert [r["login"] for r in directory.get_all_sorted()] == ["ada", "grace"]
        assert directory.is_consistent()

    def test_contains(self, alice_directory):
        assert 1 in alice_directory
        assert "bob" in alice_directory
        assert 9 not in alice_directory

    def test_stats(self, populated_directory):
        stats = populated_directory.stats()
        assert stats["entities"] == 100
        assert stats["consistent"] is True
        assert stats["id_index"]["size"] == 100
        assert stats["id_index"]["valid"] is True
        assert stats["name_index"]["height"] <= 10
        populated_directory.log_stats()


@pytest.mark.unit
class TestSeedLoading:
    """JSON seed files"""

    def test_load_entities(self, seed_file):
        entities = load_entities(seed_file)
        assert entities[0] == Entity(1, "alice")
        assert len(entities) == 4

    def test_seed_directory_skips_duplicates(self, empty_directory, seed_file):
        assert seed_directory(empty_directory, seed_file) == 3
        assert empty_directory.search_by_id(4) is None

    def test_malformed_seed(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"entity_id": 1}]))
        with pytest.raises(ConfigurationError):
            load_entities(path)

    def test_missing_seed(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_entities(tmp_path / "absent.json")

    def test_seed_must_be_array(self, tmp_path):
        path = tmp_path / "obj.json"
        path.write_text(json.dumps({"entity_id": 1, "name": "x"}))
        with pytest.raises(ConfigurationError):
            load_entities(path)


@pytest.mark.slow
class TestDirectoryStress:
    """Randomized add/remove sequences"""

    def test_mixed_operations(self, empty_directory, user_pool):
        rng = random.Random(12345)
        expected = {}

        for i in range(1000):
            entity = user_pool[rng.randrange(len(user_pool))]
            op = rng.randrange(3)
            if op == 0:
                added = empty_directory.add_entity(entity)
                assert added == (entity.entity_id not in expected)
                expected[entity.entity_id] = entity
            elif op == 1:
                removed = empty_directory.remove_by_id(entity.entity_id)
                assert removed == (entity.entity_id in expected)
                expected.pop(entity.entity_id, None)
            else:
                found = empty_directory.search_by_name(entity.name)
                assert (found is entity) == (entity.entity_id in expected)

            assert empty_directory.is_consistent()
            if i % 100 == 0:
                empty_directory.by_id.check_invariants()
                empty_directory.by_name.check_invariants()

        verify(empty_directory, list(expected.values()))

    def test_rapid_add_remove_same_entity(self, empty_directory, user_pool):
        empty_directory.migrate(user_pool[:5])
        for _ in range(100):
            assert empty_directory.add_entity(user_pool[10])
            assert empty_directory.remove_entity(10)
        assert empty_directory.get_total_count() == 5
        verify(empty_directory, user_pool[:5])
