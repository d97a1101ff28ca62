"""Group-by-then-reduce helpers shared by the report generators."""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, List, TypeVar

from .models import CleanRecord

K = TypeVar("K", bound=Hashable)
A = TypeVar("A")


def bucket(records: Iterable[CleanRecord], key: Callable[[CleanRecord], K]) -> Dict[K, List[CleanRecord]]:
    """Partition ``records`` by ``key``; members keep their input order."""

    groups: Dict[K, List[CleanRecord]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def group_by(
    records: Iterable[CleanRecord],
    key: Callable[[CleanRecord], K],
    reducer: Callable[[K, List[CleanRecord]], A],
) -> Dict[K, A]:
    """
    Reduce each distinct ``key(record)`` group to a single aggregate.

    Parameters
    ----------
    records:
        Cleaned records to aggregate.
    key:
        Extracts the grouping key.  Keys are compared for equality only, so
        composite keys should be tuples.
    reducer:
        Called once per group as ``reducer(key, members)``; every group has at
        least one member.

    Returns
    -------
    dict
        Mapping of key to the reducer's result.
    """

    return {group_key: reducer(group_key, members) for group_key, members in bucket(records, key).items()}


def count_groups(
    records: Iterable[CleanRecord],
    key: Callable[[CleanRecord], K],
    min_size: int = 1,
) -> int:
    """Count distinct keys having at least ``min_size`` members."""

    return sum(1 for members in bucket(records, key).values() if len(members) >= min_size)
