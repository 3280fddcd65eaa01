"""
MockTap Common Utilities

Shared utilities and helpers used across MockTap modules.
"""

from .url_utils import URLMatcher
from .resources import ResourceLoader

__all__ = [
    'URLMatcher',
    'ResourceLoader',
]
