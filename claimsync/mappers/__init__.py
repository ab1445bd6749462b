"""Identity provider mapper registry.

Manages the configured mapper instances, keyed by mapper name, and runs them
for a brokered login.
"""

from claimsync.config import MapperConfigError, MapperModel, SyncMode, settings
from claimsync.logging_config import get_logger
from claimsync.mappers.base import IdentityProviderMapper
from claimsync.mappers.claim_to_attribute import ClaimToAttributeMapper
from claimsync.mappers.claim_to_group import ClaimToGroupMapper
from claimsync.mappers.group_to_attribute import DefaultOrganizationMapper, GroupToAttributeMapper
from claimsync.store.protocol import ClaimSource, RealmStore, UserStore

logger = get_logger(__name__)

MAPPER_TYPES: dict[str, type[IdentityProviderMapper]] = {
    cls.mapper_id: cls
    for cls in (
        ClaimToGroupMapper,
        ClaimToAttributeMapper,
        GroupToAttributeMapper,
        DefaultOrganizationMapper,
    )
}

# Registry of configured mappers, in configuration order
_mappers: dict[str, tuple[MapperModel, IdentityProviderMapper]] = {}


def init_mappers(models: list[MapperModel] | None = None) -> None:
    """Initialize all configured mappers.

    Validates every mapper up front so a bad config fails at startup rather
    than on someone's login.

    Raises:
        MapperConfigError: on unknown types, duplicate names, unsupported sync
            modes or unusable config maps.
    """
    _mappers.clear()

    for model in settings.mappers if models is None else models:
        mapper_cls = MAPPER_TYPES.get(model.mapper_type)
        if mapper_cls is None:
            raise MapperConfigError(f"Unknown mapper type {model.mapper_type!r} for {model.name!r}")
        if model.name in _mappers:
            raise MapperConfigError(f"Duplicate mapper name {model.name!r}")

        mapper = mapper_cls()
        if not mapper.supports_sync_mode(model.sync_mode):
            raise MapperConfigError(
                f"Mapper {model.name!r} does not support sync mode {model.sync_mode}"
            )
        mapper.parse_config(model.config)

        _mappers[model.name] = (model, mapper)
        logger.info(
            "Registered mapper",
            mapper=model.name,
            type=model.mapper_type,
            idp=model.identity_provider_alias,
        )

    logger.info("Mappers initialized", count=len(_mappers))


def get_mapper(name: str) -> tuple[MapperModel, IdentityProviderMapper] | None:
    """Get a configured mapper by name."""
    return _mappers.get(name)


def list_mappers() -> list[dict[str, str]]:
    """List configured mappers (name, type, provider, sync mode)."""
    return [
        {
            "name": model.name,
            "type": model.mapper_type,
            "identity_provider_alias": model.identity_provider_alias,
            "sync_mode": str(model.sync_mode),
        }
        for model, _ in _mappers.values()
    ]


def sync_user(
    realm: RealmStore,
    user: UserStore,
    source: ClaimSource,
    identity_provider_alias: str,
    is_new_user: bool,
) -> int:
    """Run the mappers configured for a provider against one login.

    New users go through every mapper. Returning users only go through
    mappers in force sync mode. Store errors propagate; the next login
    retries from scratch.

    Returns:
        Number of mappers run.
    """
    ran = 0
    for model, mapper in _mappers.values():
        if model.identity_provider_alias != identity_provider_alias:
            continue
        if is_new_user:
            mapper.import_new_user(realm, user, model, source)
        elif model.sync_mode == SyncMode.FORCE:
            mapper.update_brokered_user(realm, user, model, source)
        else:
            continue
        ran += 1
    return ran


__all__ = [
    "MAPPER_TYPES",
    "ClaimToAttributeMapper",
    "ClaimToGroupMapper",
    "DefaultOrganizationMapper",
    "GroupToAttributeMapper",
    "IdentityProviderMapper",
    "get_mapper",
    "init_mappers",
    "list_mappers",
    "sync_user",
]
