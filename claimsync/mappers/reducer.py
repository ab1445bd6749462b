"""Single-value reduction for attribute mappers."""

from collections.abc import Hashable, Iterable
from typing import TypeVar

import structlog

from claimsync.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=Hashable)


def reduce_single_value(
    entries: Iterable[T],
    already_set: bool,
    overwrite: bool,
    log: structlog.stdlib.BoundLogger | None = None,
) -> T | None:
    """Reduce filtered, formatted entries to exactly one value.

    Fails closed: anything other than exactly one distinct value yields None
    and the attribute is left alone. Entries are compared by equality, so
    callers reducing groups pass GroupRefs rather than names to keep two
    groups that share a name apart.

    Args:
        entries: Candidate values, already filtered and formatted.
        already_set: Whether the target attribute holds a non-empty value.
        overwrite: Whether an existing value may be replaced.
        log: Bound logger carrying invocation context; defaults to the module logger.

    Returns:
        The single value to write, or None when nothing should change.
    """
    log = log or logger
    if already_set and not overwrite:
        log.debug("Attribute already set, not overwriting")
        return None

    candidates = list(dict.fromkeys(entries))
    if len(candidates) == 1:
        return candidates[0]

    if already_set:
        # The existing value stays in place.
        log.info("Cannot reduce entries to one value, keeping current value", entries=candidates)
    else:
        log.warning(
            "Cannot reduce entries to one value, manual action may be required",
            entries=candidates,
        )
    return None
