"""Tie-inclusive "top N distinct timestamps" ranking used by lastn queries."""

from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import TypeVar

from crs.domain.search.model.result import LastnEntry

K = TypeVar("K", bound=Hashable)
G = TypeVar("G", bound=Hashable)


def top_n(entries: Sequence[LastnEntry[K]], n: int) -> list[K]:
    """Return ids belonging to the top ``n`` distinct timestamps.

    Entries are ordered by timestamp descending; entries sharing a timestamp
    keep their input order. Each distinct timestamp is one rank, and a rank
    is always emitted whole, so the result holds more than ``n`` ids when
    the n-th rank is shared. Fewer than ``n`` ranks returns everything.

    >>> from datetime import datetime
    >>> t = lambda d: datetime(2024, 1, d)
    >>> top_n([LastnEntry("a", t(3)), LastnEntry("b", t(2)),
    ...        LastnEntry("c", t(2)), LastnEntry("d", t(1))], 2)
    ['a', 'b', 'c']
    """
    if n < 1:
        raise ValueError("n must be >= 1")

    ordered = sorted(entries, key=lambda e: e.timestamp, reverse=True)

    result: list[K] = []
    ranks = 0
    previous = None
    for entry in ordered:
        if ranks == 0 or entry.timestamp != previous:
            if ranks >= n:
                break
            ranks += 1
            previous = entry.timestamp
        result.append(entry.id)
    return result


def top_n_per_group(
    entries: Iterable[LastnEntry[K]],
    n: int,
    group_key: Callable[[LastnEntry[K]], G],
) -> dict[G, list[K]]:
    """Apply top_n independently to each group.

    Groups appear in the order their first entry was seen.
    """
    groups: dict[G, list[LastnEntry[K]]] = {}
    for entry in entries:
        groups.setdefault(group_key(entry), []).append(entry)
    return {key: top_n(members, n) for key, members in groups.items()}
