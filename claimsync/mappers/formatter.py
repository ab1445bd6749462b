"""Name formatting for claim entries.

Turns a raw claim entry into a canonical group or attribute name. The steps
always run in the same order: prefix trim, whitespace collapse, lowercase.
"""

import re
from dataclasses import dataclass

_WHITESPACE_RUN = re.compile(r"\s+")
_DASH_RUN = re.compile(r"-+")


@dataclass(frozen=True)
class NameFormatter:
    """Formatting rules for one mapper.

    Attributes:
        trim_prefix: Regex whose first match is removed. Not anchored, so
            anchor it with '^' to only strip real prefixes.
        trim_whitespace: Strip surrounding whitespace and turn inner runs of
            whitespace and dashes into a single dash.
        to_lowercase: Lowercase the result.
    """

    trim_prefix: str = ""
    trim_whitespace: bool = False
    to_lowercase: bool = False

    def format(self, raw: str | None) -> str:
        if raw is None:
            return ""
        name = raw
        if self.trim_prefix:
            name = re.sub(self.trim_prefix, "", name, count=1)
        if self.trim_whitespace:
            name = _WHITESPACE_RUN.sub("-", name.strip())
            name = _DASH_RUN.sub("-", name)
        if self.to_lowercase:
            name = name.lower()
        return name


def replace_invalid_characters(group_path: str) -> str:
    """Flatten a group path claim ('/LDAP/some group') into a group name ('LDAP-some group')."""
    if group_path.startswith("/"):
        group_path = group_path[1:]
    return group_path.replace("/", "-")
