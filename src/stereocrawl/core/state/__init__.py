"""
State Management

JSON snapshot persistence for resumable crawls.
"""

from .store import PostStore

__all__ = ['PostStore']
