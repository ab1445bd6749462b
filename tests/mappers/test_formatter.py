"""Tests for claim entry name formatting."""

from claimsync.mappers.formatter import NameFormatter, replace_invalid_characters


class TestNameFormatter:
    def test_defaults_leave_input_untouched(self):
        assert NameFormatter().format("  Sapphire Stars ") == "  Sapphire Stars "

    def test_none_becomes_empty_string(self):
        assert NameFormatter(trim_whitespace=True).format(None) == ""

    def test_trim_whitespace(self):
        formatter = NameFormatter(trim_whitespace=True)
        assert formatter.format("\t  sapphire-stars\n") == "sapphire-stars"

    def test_inner_whitespace_becomes_dash(self):
        formatter = NameFormatter(trim_whitespace=True)
        assert formatter.format("\t  sapphire  stars  \n") == "sapphire-stars"

    def test_dash_runs_collapse(self):
        formatter = NameFormatter(trim_whitespace=True)
        assert formatter.format("\t  sapphire -- -stars  \n") == "sapphire-stars"

    def test_simple_prefix(self):
        formatter = NameFormatter(trim_prefix="prefix")
        assert formatter.format("prefixsapphire-stars") == "sapphire-stars"

    def test_regex_prefix(self):
        assert NameFormatter(trim_prefix="(rose|sapphire)-").format("rose-stars") == "stars"

    def test_prefix_removed_only_once(self):
        assert NameFormatter(trim_prefix="ab").format("ababc") == "abc"

    def test_prefix_is_not_anchored(self):
        assert NameFormatter(trim_prefix="org-").format("my-org-team") == "my-team"

    def test_lowercase(self):
        assert NameFormatter(to_lowercase=True).format("SAPPHIRE StaRs") == "sapphire stars"

    def test_all_options_apply_in_order(self):
        formatter = NameFormatter(trim_prefix="PREFIX", trim_whitespace=True, to_lowercase=True)
        assert formatter.format("  PREFIXSapphire  Stars  ") == "sapphire-stars"

    def test_all_options_with_mixed_separators(self):
        formatter = NameFormatter(trim_prefix="prefix", trim_whitespace=True, to_lowercase=True)
        result = formatter.format("\t prefix SAPPHIRE     --   -         StaRs \t\n")
        assert result == "sapphire-stars"

    def test_prefix_matches_before_lowercasing(self):
        # The prefix pattern sees the raw casing.
        formatter = NameFormatter(trim_prefix="prefix", to_lowercase=True)
        assert formatter.format("PREFIXname") == "prefixname"

    def test_idempotent(self):
        formatter = NameFormatter(trim_prefix="^org:", trim_whitespace=True, to_lowercase=True)
        once = formatter.format("org: Rose  Canyon ")
        assert formatter.format(once) == once


class TestReplaceInvalidCharacters:
    def test_group_path(self):
        assert replace_invalid_characters("/LDAP/some group") == "LDAP-some group"

    def test_without_leading_slash(self):
        assert replace_invalid_characters("LDAP/keep group") == "LDAP-keep group"

    def test_only_one_leading_slash_removed(self):
        assert replace_invalid_characters("//a") == "-a"

    def test_plain_name(self):
        assert replace_invalid_characters("rose-canyon") == "rose-canyon"
