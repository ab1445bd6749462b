"""Tests for the claim-to-attribute mapper."""

from claimsync.config import MapperModel
from claimsync.mappers.claim_to_attribute import ClaimToAttributeMapper
from claimsync.store.memory import DictClaimSource

ATTRIBUTE = "appuio.io/organization"


def _config(**overrides: str):
    raw = {"claim": "groups", "target_attribute": ATTRIBUTE}
    raw.update(overrides)
    return ClaimToAttributeMapper().parse_config(raw)


class TestAssignClaimToAttribute:
    def test_sets_unset_attribute(self, user):
        result = ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["rose-canyon"], _config()
        )

        assert result == "rose-canyon"
        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_existing_value_kept_without_overwrite(self, user):
        user.set_attribute(ATTRIBUTE, ["sapphire-stars"])

        result = ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["rose-canyon"], _config()
        )

        assert result is None
        assert user.get_attributes(ATTRIBUTE) == ["sapphire-stars"]

    def test_empty_existing_value_is_replaced(self, user):
        user.set_attribute(ATTRIBUTE, [""])

        ClaimToAttributeMapper().assign_claim_to_attribute(user, ["rose-canyon"], _config())

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_existing_value_overwritten_when_enabled(self, user):
        user.set_attribute(ATTRIBUTE, ["sapphire-stars"])

        ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["rose-canyon"], _config(overwrite_attribute="true")
        )

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_ignore_pattern_removes_only_entry(self, user):
        result = ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["rose-canyon"], _config(ignore_entries="rose.*")
        )

        assert result is None
        assert user.get_attributes(ATTRIBUTE) == []

    def test_multiple_entries_are_not_reduced(self, user):
        result = ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["sapphire-stars", "rose-canyon"], _config()
        )

        assert result is None
        assert user.get_attributes(ATTRIBUTE) == []

    def test_ignore_pattern_reduces_to_one(self, user):
        config = _config(ignore_entries="admins##.*-readonly", to_lowercase="true")

        ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["admins", "Rose-Canyon", "rose-canyon-readonly"], config
        )

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_search_pattern_with_formatting(self, user):
        config = _config(
            search_entries="^/orgs/.*",
            trim_prefix="^/orgs/",
            trim_whitespace="true",
            to_lowercase="true",
        )

        ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["/teams/x", "/orgs/Rose Canyon"], config
        )

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_entries_formatting_to_same_value_count_once(self, user):
        config = _config(trim_whitespace="true", to_lowercase="true")

        ClaimToAttributeMapper().assign_claim_to_attribute(
            user, ["Rose Canyon", "rose-canyon"], config
        )

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_rerun_with_overwrite_is_noop(self, user):
        mapper = ClaimToAttributeMapper()
        config = _config(overwrite_attribute="true")
        mapper.assign_claim_to_attribute(user, ["rose-canyon"], config)

        assert mapper.assign_claim_to_attribute(user, ["rose-canyon"], config) is None
        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]


class TestSync:
    def _model(self, **config: str) -> MapperModel:
        return MapperModel(
            name="organization",
            identity_provider_alias="idp",
            mapper_type=ClaimToAttributeMapper.mapper_id,
            config={"claim": "org", "target_attribute": ATTRIBUTE, **config},
        )

    def test_scalar_claim(self, realm, user):
        ClaimToAttributeMapper().import_new_user(
            realm, user, self._model(), DictClaimSource({"org": "rose-canyon"})
        )

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_nested_claim(self, realm, user):
        ClaimToAttributeMapper().update_brokered_user(
            realm,
            user,
            self._model(claim="tenant.name"),
            DictClaimSource({"tenant": {"name": "rose-canyon"}}),
        )

        assert user.get_attributes(ATTRIBUTE) == ["rose-canyon"]

    def test_missing_claim(self, realm, user):
        ClaimToAttributeMapper().update_brokered_user(
            realm, user, self._model(), DictClaimSource({})
        )

        assert user.get_attributes(ATTRIBUTE) == []

    def test_missing_target_attribute(self, realm, user):
        ClaimToAttributeMapper().update_brokered_user(
            realm, user, self._model(target_attribute=""), DictClaimSource({"org": "rose"})
        )

        assert user.get_attributes(ATTRIBUTE) == []
        assert user.attributes == {}
