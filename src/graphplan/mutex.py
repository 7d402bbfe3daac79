"""
Symmetric pair relation used for fact and action mutexes

Pairs are stored as frozensets of hashable members, so (a, b) and (b, a)
are the same entry. A relation belongs to exactly one layer.
"""

from typing import FrozenSet, Generic, Hashable, Iterator, Set, Tuple, TypeVar

T = TypeVar('T', bound=Hashable)


class MutexRelation(Generic[T]):
    """Unordered pair set with order-independent lookup"""

    def __init__(self):
        self._pairs: Set[FrozenSet[T]] = set()

    def add(self, first: T, second: T) -> bool:
        """Add the pair; returns False if it was already present"""
        pair = frozenset((first, second))
        if pair in self._pairs:
            return False
        self._pairs.add(pair)
        return True

    def contains(self, first: T, second: T) -> bool:
        return frozenset((first, second)) in self._pairs

    def pairs(self) -> Iterator[Tuple[T, T]]:
        """Yield each pair once; a self pair is yielded as (x, x)"""
        for pair in self._pairs:
            members = tuple(pair)
            if len(members) == 1:
                yield members[0], members[0]
            else:
                yield members[0], members[1]

    def __iter__(self) -> Iterator[Tuple[T, T]]:
        return self.pairs()

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other) -> bool:
        if not isinstance(other, MutexRelation):
            return False
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"MutexRelation(n_pairs={len(self._pairs)})"
