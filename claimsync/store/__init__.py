"""
User/realm store abstraction for claimsync.

Hosts plug their identity broker's user and group model in by satisfying the
protocols in claimsync.store.protocol; claimsync.store.memory provides an
in-memory implementation.
"""

from claimsync.store.protocol import (
    ClaimSource,
    GroupExistsError,
    GroupNotFoundError,
    GroupRef,
    RealmStore,
    StoreError,
    UserStore,
)

__all__ = [
    "ClaimSource",
    "GroupExistsError",
    "GroupNotFoundError",
    "GroupRef",
    "RealmStore",
    "StoreError",
    "UserStore",
]
