"""
In-memory claim source and user/realm store.

Reference implementation of the store protocols, used by the dry-run CLI and
the test suite. Not safe for concurrent use; the broker serializes logins per
user and these objects live for a single invocation.
"""

import re
import uuid
from collections.abc import Mapping
from typing import Any

from claimsync.store.protocol import GroupExistsError, GroupNotFoundError, GroupRef

# Splits on dots that are not escaped with a backslash.
_PATH_SEPARATOR = re.compile(r"(?<!\\)\.")


def split_claim_path(name: str) -> list[str]:
    """Split a dot-addressed claim name into keys, honoring '\\.' escapes."""
    return [part.replace("\\.", ".") for part in _PATH_SEPARATOR.split(name)]


class DictClaimSource:
    """Claim source backed by a decoded token payload or SAML attribute dict."""

    def __init__(self, claims: Mapping[str, Any]) -> None:
        self._claims = claims

    def get_claim(self, name: str) -> Any | None:
        if not name:
            return None
        node: Any = self._claims
        for key in split_claim_path(name):
            if isinstance(node, Mapping):
                node = node.get(key)
            elif isinstance(node, list):
                # Nested claims inside a list are collected from every element.
                node = [
                    item.get(key) for item in node if isinstance(item, Mapping) and key in item
                ] or None
            else:
                return None
            if node is None:
                return None
        return node


class InMemoryRealm:
    """A realm holding groups, keyed by generated ids."""

    def __init__(self, name: str = "default") -> None:
        self._name = name
        self._groups: dict[str, GroupRef] = {}

    @property
    def name(self) -> str:
        return self._name

    def get_groups(self) -> list[GroupRef]:
        return list(self._groups.values())

    def create_group(self, name: str) -> GroupRef:
        if any(g.name == name for g in self._groups.values()):
            raise GroupExistsError(name)
        group = GroupRef(id=uuid.uuid4().hex, name=name)
        self._groups[group.id] = group
        return group

    def find_group(self, name: str) -> GroupRef | None:
        for group in self._groups.values():
            if group.name == name:
                return group
        return None

    def has_group(self, group: GroupRef) -> bool:
        return self._groups.get(group.id) == group


class InMemoryUser:
    """A user with multi-valued attributes and group memberships in one realm."""

    def __init__(self, username: str, realm: InMemoryRealm) -> None:
        self._username = username
        self._realm = realm
        self._attributes: dict[str, list[str]] = {}
        self._groups: dict[str, GroupRef] = {}

    @property
    def username(self) -> str:
        return self._username

    def get_attributes(self, key: str) -> list[str]:
        return list(self._attributes.get(key, []))

    def set_attribute(self, key: str, values: list[str]) -> None:
        self._attributes[key] = list(values)

    @property
    def attributes(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._attributes.items()}

    def get_groups(self) -> list[GroupRef]:
        return list(self._groups.values())

    def is_member_of(self, group: GroupRef) -> bool:
        return group.id in self._groups

    def join_group(self, group: GroupRef) -> None:
        if not self._realm.has_group(group):
            raise GroupNotFoundError(group)
        self._groups[group.id] = group

    def leave_group(self, group: GroupRef) -> None:
        self._groups.pop(group.id, None)


def load_snapshot(data: Mapping[str, Any]) -> tuple[InMemoryRealm, InMemoryUser]:
    """Build a realm and user from a plain-data snapshot.

    Expected shape::

        realm:
          name: example
          groups: [admins, rose-canyon]
        user:
          username: jdoe
          groups: [admins]
          attributes:
            appuio.io/default-organization: rose-canyon

    Groups the user belongs to are created in the realm when missing.
    Scalar attribute values are stored as single-element lists.
    """
    realm_data = data.get("realm") or {}
    user_data = data.get("user") or {}

    realm = InMemoryRealm(name=str(realm_data.get("name", "default")))
    for group_name in realm_data.get("groups") or []:
        if realm.find_group(str(group_name)) is None:
            realm.create_group(str(group_name))

    user = InMemoryUser(username=str(user_data.get("username", "user")), realm=realm)
    for group_name in user_data.get("groups") or []:
        group = realm.find_group(str(group_name)) or realm.create_group(str(group_name))
        user.join_group(group)

    for key, value in (user_data.get("attributes") or {}).items():
        values = value if isinstance(value, list) else [value]
        user.set_attribute(str(key), [str(v) for v in values])

    return realm, user


def dump_user(user: InMemoryUser) -> dict[str, Any]:
    """Render a user's memberships and attributes as plain data."""
    return {
        "username": user.username,
        "groups": sorted(g.name for g in user.get_groups()),
        "attributes": dict(sorted(user.attributes.items())),
    }
