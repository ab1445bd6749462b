"""Claim to group mapper.

Syncs the groups listed in an identity provider claim into realm groups:
joins the user to the named groups (optionally creating them) and removes
the user from groups the claim no longer names.
"""

import dataclasses
from collections.abc import Iterable, Sequence

import structlog

from claimsync.config import MapperConfig
from claimsync.logging_config import get_logger
from claimsync.mappers.base import (
    CLAIM,
    IGNORE_ENTRIES,
    SEARCH_ENTRIES,
    TO_LOWERCASE,
    TRIM_PREFIX,
    TRIM_WHITESPACE,
    ConfigProperty,
    IdentityProviderMapper,
    MappingContext,
    PropertyType,
)
from claimsync.mappers.claims import extract_claim
from claimsync.mappers.formatter import replace_invalid_characters
from claimsync.mappers.reconciler import ReconciliationPlan, apply_plan, plan_group_sync
from claimsync.store.protocol import ClaimSource, GroupRef, RealmStore, UserStore

logger = get_logger(__name__)

CONTAINS_TEXT = ConfigProperty(
    "contains_text",
    "Contains text",
    "Only sync groups that contain this text in their name, both in the claim and "
    "among the user's current groups. Current groups match either the text as written "
    "or its formatted form. If empty, sync all groups. "
    "Cannot be combined with the entry patterns.",
)

CREATE_GROUPS = ConfigProperty(
    "create_groups",
    "Create groups if not exists",
    "Indicates if missing groups must be created in the realm. Otherwise, they will be ignored.",
    PropertyType.BOOLEAN,
    False,
)


class ClaimToGroupMapper(IdentityProviderMapper):
    """Syncs the user's groups with the groups named in a claim.

    Without contains_text this is a full replace: every group the user is in
    that the claim does not name is left.
    """

    mapper_id = "oidc-group-idp-mapper"
    display_category = "Group Importer"
    display_type = "Claim to Group"
    help_text = "If a claim exists, sync the IdP user's groups with realm groups"

    CONFIG_PROPERTIES = (
        dataclasses.replace(
            CLAIM,
            help_text="Name of claim to search for in token. This claim must be a string "
            "array with the names of the groups which the user is member. " + CLAIM.help_text,
        ),
        CONTAINS_TEXT,
        SEARCH_ENTRIES,
        IGNORE_ENTRIES,
        CREATE_GROUPS,
        TRIM_PREFIX,
        dataclasses.replace(TRIM_WHITESPACE, default=True),
        dataclasses.replace(TO_LOWERCASE, default=True),
    )

    def sync(
        self,
        realm: RealmStore,
        user: UserStore,
        config: MapperConfig,
        source: ClaimSource,
        context: MappingContext,
    ) -> None:
        log = context.bind(logger)
        if not config.claim:
            log.debug("No group claim configured, ignoring")
            return

        entries = extract_claim(source, config.claim)
        if entries is None:
            log.debug("No group claim for user, ignoring", claim=config.claim)
            return

        self.sync_groups(realm, user, entries, config, log)

    def sync_groups(
        self,
        realm: RealmStore,
        user: UserStore,
        entries: Sequence[str],
        config: MapperConfig,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> ReconciliationPlan:
        """Reconcile the user's groups with already extracted claim entries."""
        log = log or logger
        entry_filter = config.entry_filter()
        formatter = config.formatter()

        desired = {
            formatter.format(replace_invalid_characters(entry))
            for entry in entry_filter.filter(entries)
        }
        desired.discard("")

        current = user.get_groups()
        if config.contains_text:
            current = scope_current_groups(current, desired, config)

        log.debug(
            "Starting group mapping",
            current=sorted(g.name for g in current),
            desired=sorted(desired),
        )

        plan = plan_group_sync(current, desired, realm.get_groups(), config.create_groups)
        if plan.is_empty:
            log.debug("Groups already in sync")
            return plan

        apply_plan(plan, user, realm, log=log)
        log.info(
            "Synced groups",
            created=sorted(plan.to_create),
            joined=sorted(g.name for g in plan.to_join) + sorted(plan.to_create),
            left=sorted(g.name for g in plan.to_leave),
        )
        return plan


def scope_current_groups(
    current: Iterable[GroupRef],
    desired: set[str],
    config: MapperConfig,
) -> list[GroupRef]:
    """Keep the current groups that contains_text puts under this mapper's control.

    Group names are canonical (formatted), so a group is in scope when its
    name contains contains_text either as written or in canonical form.
    Groups already named by the claim are always in scope.
    """
    needles = {config.contains_text}
    canonical = config.formatter().format(replace_invalid_characters(config.contains_text))
    if canonical:
        needles.add(canonical)
    return [
        g for g in current if g.name in desired or any(needle in g.name for needle in needles)
    ]
