"""Utilities for Strata: ignore rules and lock files."""

from strata.utils.ignore import IgnorePattern, IgnoreMatcher, get_ignore_matcher
from strata.utils.lockfile import LockFile, LockHeld, atomic_write

__all__ = [
    'IgnorePattern', 'IgnoreMatcher', 'get_ignore_matcher',
    'LockFile', 'LockHeld', 'atomic_write',
]
