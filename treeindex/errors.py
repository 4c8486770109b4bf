#!/usr/bin/env python3
"""
TreeIndex Error Hierarchy
Canonical exception classes for the ordered maps and the directory.

Duplicate and missing keys are reported by the core as False/None return
values; the matching exception classes exist for the outer surfaces (HTTP
service, shell) that turn those results into errors.
"""

from enum import Enum


class ErrorCode(Enum):
    UNKNOWN = "UNKNOWN_ERROR"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    NOT_FOUND = "NOT_FOUND"
    EMPTY_TREE = "EMPTY_TREE"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class TreeIndexError(Exception):
    """Base class for all TreeIndex exceptions"""
    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class DuplicateKeyError(TreeIndexError):
    """Raised by outer surfaces when an insertion collides with a present key"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, ErrorCode.DUPLICATE_KEY, details)


class NotFoundError(TreeIndexError):
    """Raised by outer surfaces when a lookup or removal targets an absent key"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, ErrorCode.NOT_FOUND, details)


class EmptyTreeError(TreeIndexError):
    """Raised when min()/max() is requested from an empty map"""
    def __init__(self, message: str = "tree is empty", details: dict = None):
        super().__init__(message, ErrorCode.EMPTY_TREE, details)


class InvariantViolation(TreeIndexError):
    """Raised by validators when a structural invariant does not hold"""
    def __init__(self, message: str, violations: list = None):
        super().__init__(message, ErrorCode.INVARIANT_VIOLATION, {'violations': violations or []})
        self.violations = violations or []


class ConfigurationError(TreeIndexError):
    """Raised when configuration values cannot be parsed"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)
