"""Identity provider mapper base abstraction.

Defines the interface every mapper implements, the static config property
descriptors mappers publish for admin consoles, and the per-invocation
context used to bind log output to a realm, provider and user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

from claimsync.config import MapperConfig, MapperModel, SyncMode
from claimsync.logging_config import get_logger
from claimsync.store.protocol import ClaimSource, RealmStore, UserStore

logger = get_logger(__name__)

# Config keys shared by several mappers.
CLAIM_PROPERTY = "claim"
TARGET_ATTRIBUTE_PROPERTY = "target_attribute"
TRIM_PREFIX_PROPERTY = "trim_prefix"
TRIM_WHITESPACE_PROPERTY = "trim_whitespace"
TO_LOWERCASE_PROPERTY = "to_lowercase"

DEFAULT_ORGANIZATION_ATTRIBUTE = "appuio.io/default-organization"


class PropertyType(StrEnum):
    """Form field types understood by admin consoles."""

    STRING = "String"
    BOOLEAN = "boolean"
    MULTIVALUED_STRING = "MultivaluedString"


@dataclass(frozen=True)
class ConfigProperty:
    """Descriptor for one mapper config key."""

    name: str
    label: str
    help_text: str
    type: PropertyType = PropertyType.STRING
    default: Any = None


CLAIM = ConfigProperty(
    CLAIM_PROPERTY,
    "Claim name",
    "Name of the claim to search for in token. "
    "You can reference nested claims using a '.', i.e. 'address.locality'. "
    "To use dot (.) literally, escape it with backslash (\\.)",
    default="",
)

TRIM_PREFIX = ConfigProperty(
    TRIM_PREFIX_PROPERTY,
    "Trim Prefix",
    "Removes the first occurrence of the given regex pattern. "
    "Trimming the prefix occurs before trimming whitespaces (if enabled).",
    default="",
)

TRIM_WHITESPACE = ConfigProperty(
    TRIM_WHITESPACE_PROPERTY,
    "Trim whitespaces",
    "Removes leading and trailing whitespaces completely. "
    "Dashes and spaces between words are replaced with a single dash.",
    PropertyType.BOOLEAN,
    False,
)

TO_LOWERCASE = ConfigProperty(
    TO_LOWERCASE_PROPERTY,
    "Lowercase names",
    "Transforms the strings to lower case.",
    PropertyType.BOOLEAN,
    False,
)

IGNORE_ENTRIES = ConfigProperty(
    "ignore_entries",
    "Ignore entries pattern",
    "The claim might contain values that you want to ignore. "
    "Each entry is a regex that is matched against the whole claim entry before it is formatted. "
    "If any pattern matches, the entry is ignored.",
    PropertyType.MULTIVALUED_STRING,
)

SEARCH_ENTRIES = ConfigProperty(
    "search_entries",
    "Search entries pattern",
    "You might be only interested in certain values of a claim. "
    "Each entry is a regex that is matched against the whole claim entry before it is formatted. "
    "Only entries that match a pattern are further processed. "
    "'Ignore entries pattern' takes precedence.",
    PropertyType.MULTIVALUED_STRING,
)


@dataclass(frozen=True)
class MappingContext:
    """Who a mapper invocation is for; bound onto every log event."""

    realm: str
    identity_provider_alias: str
    username: str

    def bind(self, log: Any) -> Any:
        return log.bind(realm=self.realm, idp=self.identity_provider_alias, user=self.username)


class IdentityProviderMapper(ABC):
    """Abstract base class for all identity provider mappers."""

    mapper_id: ClassVar[str]
    display_category: ClassVar[str]
    display_type: ClassVar[str]
    help_text: ClassVar[str] = ""
    CONFIG_PROPERTIES: ClassVar[tuple[ConfigProperty, ...]] = ()
    SUPPORTED_SYNC_MODES: ClassVar[frozenset[SyncMode]] = frozenset(
        {SyncMode.IMPORT, SyncMode.FORCE}
    )

    def config_defaults(self) -> dict[str, Any]:
        """Defaults declared in the property table, keyed by config key."""
        return {p.name: p.default for p in self.CONFIG_PROPERTIES if p.default is not None}

    def parse_config(self, raw: dict[str, str] | None) -> MapperConfig:
        """Parse a raw config map for this mapper type.

        Raises:
            MapperConfigError: if the config cannot be used.
        """
        return MapperConfig.from_map(raw, defaults=self.config_defaults())

    def supports_sync_mode(self, mode: SyncMode) -> bool:
        return mode in self.SUPPORTED_SYNC_MODES

    def import_new_user(
        self,
        realm: RealmStore,
        user: UserStore,
        model: MapperModel,
        source: ClaimSource,
    ) -> None:
        """Called when a brokered user is first imported."""
        config = self.parse_config(model.config)
        self.sync(realm, user, config, source, self._context(realm, user, model))

    def update_brokered_user(
        self,
        realm: RealmStore,
        user: UserStore,
        model: MapperModel,
        source: ClaimSource,
    ) -> None:
        """Called on every later login of an already imported user."""
        config = self.parse_config(model.config)
        self.sync(realm, user, config, source, self._context(realm, user, model))

    @abstractmethod
    def sync(
        self,
        realm: RealmStore,
        user: UserStore,
        config: MapperConfig,
        source: ClaimSource,
        context: MappingContext,
    ) -> None:
        """Bring the user in line with the claims for this mapper."""

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.mapper_id,
            "category": self.display_category,
            "type": self.display_type,
            "help_text": self.help_text,
            "properties": [p.name for p in self.CONFIG_PROPERTIES],
        }

    @staticmethod
    def _context(realm: RealmStore, user: UserStore, model: MapperModel) -> MappingContext:
        return MappingContext(
            realm=realm.name,
            identity_provider_alias=model.identity_provider_alias,
            username=user.username,
        )


def is_attribute_set(user: UserStore, key: str) -> bool:
    """True if the attribute holds at least one non-empty value."""
    return any(value != "" for value in user.get_attributes(key))
