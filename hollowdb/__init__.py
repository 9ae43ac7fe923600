"""
hollowdb - versioned attribute storage for server assets.

Namespaced JSON documents attached to a server, where consecutive identical
submissions collapse into one record with a tally.
"""

from hollowdb._core import HollowDB
from hollowdb.errors import HollowDBError, NotFoundError, StorageError, ValidationError
from hollowdb.models.server import Server
from hollowdb.models.versioned_attributes import VersionedAttributes
from hollowdb.pagination import Pagination

__all__ = [
    "HollowDB",
    "HollowDBError",
    "NotFoundError",
    "Pagination",
    "Server",
    "StorageError",
    "ValidationError",
    "VersionedAttributes",
]
