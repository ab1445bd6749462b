"""Claim to attribute mapper.

Writes a single claim value into a user attribute. List claims are filtered
and formatted, and the attribute is only written when exactly one value
remains.
"""

from collections.abc import Sequence

import structlog

from claimsync.config import MapperConfig
from claimsync.logging_config import get_logger
from claimsync.mappers.base import (
    CLAIM,
    IGNORE_ENTRIES,
    SEARCH_ENTRIES,
    TARGET_ATTRIBUTE_PROPERTY,
    TO_LOWERCASE,
    TRIM_PREFIX,
    TRIM_WHITESPACE,
    ConfigProperty,
    IdentityProviderMapper,
    MappingContext,
    PropertyType,
    is_attribute_set,
)
from claimsync.mappers.claims import extract_claim
from claimsync.mappers.reducer import reduce_single_value
from claimsync.store.protocol import ClaimSource, RealmStore, UserStore

logger = get_logger(__name__)

TARGET_ATTRIBUTE = ConfigProperty(
    TARGET_ATTRIBUTE_PROPERTY,
    "Target attribute",
    "**REQUIRED** The user attribute key which the mapper should update. "
    "If the attribute is already present but with an empty string, it will be updated.",
    default="",
)

OVERWRITE_ATTRIBUTE = ConfigProperty(
    "overwrite_attribute",
    "Overwrite existing attribute value",
    "Overwrite the value of the target attribute even if it is already set.",
    PropertyType.BOOLEAN,
    False,
)


class ClaimToAttributeMapper(IdentityProviderMapper):
    mapper_id = "claim-to-attribute-mapper"
    display_category = "Attribute Importer"
    display_type = "Claim to Attribute"
    help_text = (
        "Extracts a claim from a user and updates a user's attribute. "
        "If the claim is a list of strings it tries to reduce entries to one entry only. "
        "However it does nothing if there are zero or multiple entries. "
        "Use the ignore entries config option to exclude irrelevant entries."
    )

    CONFIG_PROPERTIES = (
        CLAIM,
        TARGET_ATTRIBUTE,
        OVERWRITE_ATTRIBUTE,
        IGNORE_ENTRIES,
        SEARCH_ENTRIES,
        TO_LOWERCASE,
        TRIM_WHITESPACE,
        TRIM_PREFIX,
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
        if not config.claim or not config.target_attribute:
            log.debug("Mapper is missing claim or target attribute, ignoring")
            return

        entries = extract_claim(source, config.claim)
        if entries is None:
            log.debug("No claim for user, ignoring", claim=config.claim)
            return

        self.assign_claim_to_attribute(user, entries, config, log)

    def assign_claim_to_attribute(
        self,
        user: UserStore,
        entries: Sequence[str],
        config: MapperConfig,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> str | None:
        """Write the single remaining claim value to the target attribute.

        Returns:
            The value written, or None if the attribute was left unchanged.
        """
        log = (log or logger).bind(attribute=config.target_attribute)
        already_set = is_attribute_set(user, config.target_attribute)

        formatter = config.formatter()
        values = [formatter.format(e) for e in config.entry_filter().filter(entries)]
        value = reduce_single_value(
            [v for v in values if v],
            already_set=already_set,
            overwrite=config.overwrite_attribute,
            log=log,
        )
        if value is None:
            return None

        if user.get_attributes(config.target_attribute) == [value]:
            log.debug("Attribute already up to date", value=value)
            return None

        user.set_attribute(config.target_attribute, [value])
        log.info("Set attribute", value=value)
        return value
