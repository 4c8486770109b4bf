#!/usr/bin/env python3
"""
Seed file loading.

A seed file is a JSON array of objects with "entity_id" and "name" keys.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from .directory import DualIndexDirectory, Entity
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_entities(path: Union[str, Path]) -> List[Entity]:
    """Read entities from a JSON seed file"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read seed file {path}: {e}", {'path': str(path)}) from e

    if not isinstance(payload, list):
        raise ConfigurationError(f"Seed file {path} must contain a JSON array", {'path': str(path)})

    entities = []
    for position, item in enumerate(payload):
        try:
            entities.append(Entity(int(item['entity_id']), str(item['name'])))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Seed entry {position} in {path} is malformed: {item!r}",
                {'path': str(path), 'position': position}
            ) from e
    return entities


def seed_directory(directory: DualIndexDirectory, path: Union[str, Path]) -> int:
    """Load a seed file into directory; returns the number of entities added"""
    entities = load_entities(path)
    added = directory.migrate(entities)
    if added < len(entities):
        logger.warning(f"Seed file {path}: skipped {len(entities) - added} duplicate entries")
    return added
