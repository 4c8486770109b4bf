#!/usr/bin/env python3
"""
TreeIndex Test Configuration - PyTest Configuration and Fixtures

Shared fixtures for the map, directory, shell and server tests.
"""

import pytest
import os
import sys
import json
from typing import List

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import ConfigManager
from treeindex import DualIndexDirectory, Entity


@pytest.fixture
def user_pool() -> List[Entity]:
    """200 entities named user0 .. user199"""
    return [Entity(i, f"user{i}") for i in range(200)]


@pytest.fixture
def empty_directory() -> DualIndexDirectory:
    return DualIndexDirectory()


@pytest.fixture
def populated_directory(user_pool) -> DualIndexDirectory:
    """Directory holding user0 .. user99"""
    directory = DualIndexDirectory()
    for entity in user_pool[:100]:
        assert directory.add_entity(entity)
    return directory


@pytest.fixture
def alice_directory() -> DualIndexDirectory:
    """Directory with (1, alice), (2, bob), (3, alicia)"""
    directory = DualIndexDirectory()
    for entity in (Entity(1, "alice"), Entity(2, "bob"), Entity(3, "alicia")):
        directory.add_entity(entity)
    return directory


@pytest.fixture
def seed_file(tmp_path):
    """JSON seed file with three entities and one duplicate name"""
    path = tmp_path / "seed.json"
    path.write_text(json.dumps([
        {"entity_id": 1, "name": "alice"},
        {"entity_id": 2, "name": "bob"},
        {"entity_id": 3, "name": "alicia"},
        {"entity_id": 4, "name": "bob"},
    ]))
    return path


@pytest.fixture
def clean_env(monkeypatch):
    """Remove TREEINDEX_* variables and the cached config for the test"""
    for key in list(os.environ):
        if key.startswith('TREEINDEX_'):
            monkeypatch.delenv(key)
    ConfigManager.reset()
    yield monkeypatch
    ConfigManager.reset()


# Custom markers for test organization
def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test component interaction"
    )
    config.addinivalue_line(
        "markers", "api: REST API tests"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than a few seconds"
    )
