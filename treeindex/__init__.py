#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TreeIndex Package Initialization
Exports all main components for clean imports
"""

from .errors import (
    ErrorCode,
    TreeIndexError,
    DuplicateKeyError,
    NotFoundError,
    EmptyTreeError,
    InvariantViolation,
    ConfigurationError,
)
from .comparison import ComparisonCounter
from .ordered_map import OrderedMap, TreeNode
from .balanced_map import BalancedMap
from .fuzzy import FuzzyMatcher, edit_distance
from .validation import TreeReport, validate_tree, assert_valid
from .directory import DualIndexDirectory, Entity

__all__ = [
    # Maps
    'OrderedMap',
    'BalancedMap',
    'TreeNode',
    'ComparisonCounter',

    # Directory
    'DualIndexDirectory',
    'Entity',
    'FuzzyMatcher',
    'edit_distance',

    # Validation
    'TreeReport',
    'validate_tree',
    'assert_valid',

    # Errors
    'ErrorCode',
    'TreeIndexError',
    'DuplicateKeyError',
    'NotFoundError',
    'EmptyTreeError',
    'InvariantViolation',
    'ConfigurationError',
]

__version__ = '1.0.0'
__description__ = 'AVL-backed ordered maps and a dual-index entity directory'
