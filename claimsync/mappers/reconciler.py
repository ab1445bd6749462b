"""Group membership reconciliation.

Computes the joins, leaves and group creations needed to bring a user's
memberships in line with a desired set of group names, then applies them.

Planning is pure. Applying talks to the store and does not roll back: if a
store call fails halfway, the operations already done stay done and the next
login re-plans from a fresh snapshot, converging on the same state.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from claimsync.logging_config import get_logger
from claimsync.store.protocol import GroupRef, RealmStore, UserStore

logger = get_logger(__name__)


@dataclass
class ReconciliationPlan:
    """Changes needed to synchronize one user's groups.

    to_join and to_leave never overlap. Groups in to_create are joined after
    they are created.
    """

    to_join: set[GroupRef] = field(default_factory=set)
    to_leave: set[GroupRef] = field(default_factory=set)
    to_create: set[str] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not (self.to_join or self.to_leave or self.to_create)


def plan_group_sync(
    current: Iterable[GroupRef],
    desired: Iterable[str],
    realm_groups: Iterable[GroupRef],
    create_missing: bool,
) -> ReconciliationPlan:
    """Compute the changes that make `current` match `desired`.

    Args:
        current: Groups the user is in. Every group here whose name is not
            desired is left, so scope this to the groups the mapper owns.
        desired: Canonical group names the user should be in.
        realm_groups: All groups in the realm, used to resolve desired names.
        create_missing: Create desired groups the realm does not have yet.
            When False such names are ignored.
    """
    current_set = set(current)
    desired_names = set(desired)

    by_name: dict[str, GroupRef] = {}
    for group in realm_groups:
        by_name.setdefault(group.name, group)

    resolved = {by_name[name] for name in desired_names if name in by_name}
    missing = {name for name in desired_names if name not in by_name}

    return ReconciliationPlan(
        to_join=resolved - current_set,
        to_leave={g for g in current_set if g.name not in desired_names},
        to_create=missing if create_missing else set(),
    )


def apply_plan(
    plan: ReconciliationPlan,
    user: UserStore,
    realm: RealmStore,
    log: structlog.stdlib.BoundLogger | None = None,
) -> list[GroupRef]:
    """Apply a plan: create groups, then leave, then join.

    Raises:
        StoreError: propagated from the store; earlier operations are kept.

    Returns:
        Groups the user joined, in the order they were joined.
    """
    log = log or logger
    created: list[GroupRef] = []
    for name in sorted(plan.to_create):
        log.debug("Creating group", group=name)
        created.append(realm.create_group(name))

    for group in _sorted(plan.to_leave):
        log.debug("Leaving group", group=group.name)
        user.leave_group(group)

    joined: list[GroupRef] = []
    for group in _sorted(plan.to_join | set(created)):
        log.debug("Joining group", group=group.name)
        user.join_group(group)
        joined.append(group)

    return joined


def _sorted(groups: Iterable[GroupRef]) -> list[GroupRef]:
    return sorted(groups, key=lambda g: (g.name, g.id))
