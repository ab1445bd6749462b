"""Group to attribute mappers.

Guess a user's "primary" group from the groups they are already in and store
its name in an attribute. These mappers never change memberships and never
overwrite a non-empty attribute; run a claim-to-group mapper first so the
memberships are current.
"""

import structlog

from claimsync.config import MapperConfig
from claimsync.logging_config import get_logger
from claimsync.mappers.base import (
    DEFAULT_ORGANIZATION_ATTRIBUTE,
    TARGET_ATTRIBUTE_PROPERTY,
    ConfigProperty,
    IdentityProviderMapper,
    MappingContext,
    PropertyType,
    is_attribute_set,
)
from claimsync.mappers.filters import RegexEntryFilter
from claimsync.mappers.reducer import reduce_single_value
from claimsync.store.protocol import ClaimSource, RealmStore, UserStore

logger = get_logger(__name__)

IGNORE_GROUPS = ConfigProperty(
    "ignore_groups",
    "Ignore groups",
    "The user might be in groups that you want to ignore. "
    "Each entry is a regex that is matched against each group name. "
    "If any pattern matches, the group is ignored. "
    "NOTE: Do NOT specify 2 or more '#' in sequence per pattern.",
    PropertyType.MULTIVALUED_STRING,
)

TARGET_ATTRIBUTE = ConfigProperty(
    TARGET_ATTRIBUTE_PROPERTY,
    "Target attribute",
    "The user attribute key where the group name is stored in. "
    "If this attribute is already set with a non-empty string, it will not be updated. "
    f"Defaults to '{DEFAULT_ORGANIZATION_ATTRIBUTE}'.",
    default=DEFAULT_ORGANIZATION_ATTRIBUTE,
)


class GroupToAttributeMapper(IdentityProviderMapper):
    mapper_id = "group-to-attribute-mapper"
    display_category = "Group Importer"
    display_type = "Group to Attribute"
    help_text = (
        "Guesses the 'primary' group membership of a user and updates a user's attribute "
        "if not present. It skips users where the group memberships cannot be reliably "
        "reduced to one entry. The mapper assumes that the group memberships are already "
        "up-to-date for the user and doesn't alter group memberships."
    )

    CONFIG_PROPERTIES = (IGNORE_GROUPS, TARGET_ATTRIBUTE)

    def sync(
        self,
        realm: RealmStore,
        user: UserStore,
        config: MapperConfig,
        source: ClaimSource,
        context: MappingContext,
    ) -> None:
        log = context.bind(logger)
        if not config.target_attribute:
            log.debug("No target attribute configured, ignoring")
            return
        self.assign_group_to_attribute(user, config, log)

    def assign_group_to_attribute(
        self,
        user: UserStore,
        config: MapperConfig,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> str | None:
        """Store the user's only remaining group name in the target attribute.

        Groups are counted, not names: two groups sharing a name are ambiguous.

        Returns:
            The group name written, or None if the attribute was left unchanged.
        """
        log = (log or logger).bind(attribute=config.target_attribute)
        already_set = is_attribute_set(user, config.target_attribute)

        group_filter = RegexEntryFilter(exclude=config.ignore_groups)
        groups = [g for g in user.get_groups() if group_filter.matches(g.name)]
        group = reduce_single_value(groups, already_set=already_set, overwrite=False, log=log)
        if group is None:
            return None

        user.set_attribute(config.target_attribute, [group.name])
        log.info("Set attribute from group membership", value=group.name)
        return group.name


class DefaultOrganizationMapper(GroupToAttributeMapper):
    """Group to attribute under the default-organization naming."""

    mapper_id = "appuio-default-organization-mapper"
    display_type = "Default Organization to Attribute"
    help_text = (
        "Guesses the 'primary' group membership of a user and updates the user's "
        "default-organization attribute if not present. It skips users where the default "
        "organization cannot be reliably determined. The mapper assumes that the group "
        "memberships are already up-to-date for the user (use other mappers first to set "
        "the group memberships)."
    )
