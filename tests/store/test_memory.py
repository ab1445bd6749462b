"""Tests for the in-memory claim source and stores."""

import pytest

from claimsync.store.memory import (
    DictClaimSource,
    InMemoryRealm,
    InMemoryUser,
    dump_user,
    load_snapshot,
    split_claim_path,
)
from claimsync.store.protocol import (
    ClaimSource,
    GroupExistsError,
    GroupNotFoundError,
    GroupRef,
    RealmStore,
    StoreError,
    UserStore,
)


class TestSplitClaimPath:
    def test_plain(self):
        assert split_claim_path("groups") == ["groups"]

    def test_nested(self):
        assert split_claim_path("address.locality") == ["address", "locality"]

    def test_escaped_dot(self):
        assert split_claim_path("https://example\\.com/groups") == ["https://example.com/groups"]

    def test_mixed(self):
        assert split_claim_path("ext.my\\.app.roles") == ["ext", "my.app", "roles"]


class TestDictClaimSource:
    def test_satisfies_protocol(self):
        assert isinstance(DictClaimSource({}), ClaimSource)

    def test_missing(self):
        assert DictClaimSource({"a": 1}).get_claim("b") is None

    def test_empty_name(self):
        assert DictClaimSource({"": "x"}).get_claim("") is None

    def test_nested_missing(self):
        assert DictClaimSource({"a": {"b": 1}}).get_claim("a.c") is None

    def test_path_through_scalar(self):
        assert DictClaimSource({"a": "text"}).get_claim("a.b") is None

    def test_path_through_list(self):
        source = DictClaimSource({"orgs": [{"name": "rose"}, {"name": "onyx"}, {"id": 3}]})
        assert source.get_claim("orgs.name") == ["rose", "onyx"]

    def test_falsy_values_are_present(self):
        source = DictClaimSource({"groups": [], "flag": False})
        assert source.get_claim("groups") == []
        assert source.get_claim("flag") is False


class TestInMemoryRealm:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryRealm(), RealmStore)

    def test_create_group(self):
        realm = InMemoryRealm()
        group = realm.create_group("rose-canyon")
        assert realm.get_groups() == [group]
        assert realm.find_group("rose-canyon") == group

    def test_duplicate_group(self):
        realm = InMemoryRealm()
        realm.create_group("rose-canyon")
        with pytest.raises(GroupExistsError):
            realm.create_group("rose-canyon")

    def test_errors_share_base(self):
        assert issubclass(GroupExistsError, StoreError)
        assert issubclass(GroupNotFoundError, StoreError)


class TestInMemoryUser:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryUser("jdoe", InMemoryRealm()), UserStore)

    def test_join_and_leave(self, realm, user):
        group = realm.create_group("rose-canyon")
        user.join_group(group)
        assert user.is_member_of(group)

        user.leave_group(group)
        assert not user.is_member_of(group)

    def test_leave_non_member_is_noop(self, realm, user):
        user.leave_group(realm.create_group("rose-canyon"))
        assert user.get_groups() == []

    def test_join_unknown_group(self, user):
        with pytest.raises(GroupNotFoundError):
            user.join_group(GroupRef(id="missing", name="missing"))

    def test_attributes_are_copied(self, user):
        values = ["a"]
        user.set_attribute("k", values)
        values.append("b")
        assert user.get_attributes("k") == ["a"]
        assert user.get_attributes("unset") == []


class TestSnapshot:
    def test_load_and_dump(self):
        realm, user = load_snapshot(
            {
                "realm": {"name": "appuio", "groups": ["rose-canyon", "sapphire-stars"]},
                "user": {
                    "username": "jdoe",
                    "groups": ["rose-canyon", "admins"],
                    "attributes": {"org": "rose-canyon", "tags": ["a", "b"]},
                },
            }
        )

        assert realm.name == "appuio"
        assert sorted(g.name for g in realm.get_groups()) == [
            "admins",
            "rose-canyon",
            "sapphire-stars",
        ]
        assert dump_user(user) == {
            "username": "jdoe",
            "groups": ["admins", "rose-canyon"],
            "attributes": {"org": ["rose-canyon"], "tags": ["a", "b"]},
        }

    def test_empty_snapshot(self):
        realm, user = load_snapshot({})
        assert realm.get_groups() == []
        assert user.username == "user"
