"""
gcontact_gravatar.storage - Persistent storage module

Contains the SQLite-backed avatar lookup cache.
"""

from gcontact_gravatar.storage.cache import AvatarCacheStore

__all__ = ["AvatarCacheStore"]
