"""Claim extraction.

Pulls a named claim out of a claim source and normalizes it to a list of
strings. This is the only place that branches on the runtime type of a claim.
"""

from typing import Any

from claimsync.store.protocol import ClaimSource


def extract_claim(source: ClaimSource, claim_name: str) -> list[str] | None:
    """Read a claim as a list of strings.

    Args:
        source: Claim source for the current login.
        claim_name: Dot-addressed claim name; path resolution is left to the source.

    Returns:
        None when the claim is absent. Otherwise the claim's entries; a scalar
        claim becomes a single-element list and an empty list stays empty.
    """
    claim = source.get_claim(claim_name)
    if claim is None:
        return None
    if isinstance(claim, list | tuple):
        return [_to_text(item) for item in claim]
    return [_to_text(claim)]


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
