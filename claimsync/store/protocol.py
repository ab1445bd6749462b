"""
User/realm store and claim source protocols for claimsync.

Mappers never touch host-owned objects directly. They read claims through a
ClaimSource and mutate users and groups through the UserStore and RealmStore
capabilities, holding only the opaque GroupRef handles those return.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# --- Data Types ---


@dataclass(frozen=True)
class GroupRef:
    """Handle to a group in the realm.

    Equality and hashing cover both fields, so two refs are the same group
    only if the store handed out the same id and name.
    """

    id: str
    name: str


# --- Exceptions ---


class StoreError(Exception):
    """Base exception for user/realm store operations."""


class GroupNotFoundError(StoreError):
    """Raised when a group handle does not resolve to an existing group."""

    def __init__(self, group: GroupRef) -> None:
        self.group = group
        super().__init__(f"Group not found: {group.name} ({group.id})")


class GroupExistsError(StoreError):
    """Raised when creating a group whose name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Group already exists: {name}")


# --- Protocols ---


@runtime_checkable
class ClaimSource(Protocol):
    """Read-only access to the claims asserted by an identity provider."""

    def get_claim(self, name: str) -> Any | None:
        """Look up a claim by name.

        Names are dot-addressed ('address.locality'); a backslash-escaped dot
        ('https://example\\.com/groups') addresses a key containing a literal dot.

        Returns:
            The claim value, or None when the claim is absent.
        """
        ...


@runtime_checkable
class UserStore(Protocol):
    """Attribute and membership operations for a single user."""

    @property
    def username(self) -> str: ...

    def get_attributes(self, key: str) -> list[str]:
        """Return all values of an attribute (empty when unset)."""
        ...

    def set_attribute(self, key: str, values: list[str]) -> None:
        """Replace all values of an attribute."""
        ...

    def get_groups(self) -> list[GroupRef]:
        """Return the groups the user is currently a member of."""
        ...

    def is_member_of(self, group: GroupRef) -> bool: ...

    def join_group(self, group: GroupRef) -> None:
        """Add the user to a group.

        Raises:
            GroupNotFoundError: if the group does not exist.
        """
        ...

    def leave_group(self, group: GroupRef) -> None:
        """Remove the user from a group. Leaving a group the user is not in is a no-op."""
        ...


@runtime_checkable
class RealmStore(Protocol):
    """Group lookup and creation within a realm."""

    @property
    def name(self) -> str: ...

    def get_groups(self) -> list[GroupRef]:
        """Return all groups in the realm."""
        ...

    def create_group(self, name: str) -> GroupRef:
        """Create a group.

        Raises:
            GroupExistsError: if a group with this name already exists.
        """
        ...
