"""
Predicates and Fact Sets

- Predicate: a named atom whose parameters are Binding cells, e.g.
  mam(X) inside an action schema or mam(brambory) in a fact layer
- FactSet: an insertion-ordered collection of predicates with set semantics

Ground facts are built with constant cells, so their value key never changes
and they can be hashed. Template predicates (schema literals) change their
values during grounding and are compared by value at the time of the query.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from graphplan.binding import Binding, BindingArena


class Predicate:
    """
    A single atom: a name plus an ordered list of parameter bindings

    Examples:
        Predicate.ground("at", ["home"])          -> at(home)
        Predicate.ground("handempty", [])         -> handempty
        Predicate("mam", [arena.new_binding()])   -> mam($unbound)

    Attributes:
        name: Predicate name
        parameters: Tuple of Binding cells
    """

    __slots__ = ('name', 'parameters')

    def __init__(self, name: str, parameters: Sequence[Binding] = ()):
        self.name = name
        self.parameters: Tuple[Binding, ...] = tuple(parameters)

    @classmethod
    def ground(cls, name: str, args: Iterable[str] = ()) -> 'Predicate':
        """Create a fully constant predicate with its own arena"""
        arena = BindingArena()
        return cls(name, [arena.new_binding(str(arg)) for arg in args])

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def values(self) -> Tuple[Optional[str], ...]:
        """Current parameter values (None for unbound parameters)"""
        return tuple(param.value for param in self.parameters)

    @property
    def key(self) -> Tuple[str, Tuple[Optional[str], ...]]:
        """Value key: (name, values)"""
        return (self.name, self.values)

    @property
    def sort_key(self) -> Tuple:
        """
        Total ordering key: name, then parameters left to right, then arity

        Each parameter compares as (is_bound, value), so an unbound parameter
        sorts before every bound value.
        """
        params = tuple((value is not None, value or "") for value in self.values)
        return (self.name, params, self.arity)

    def is_grounded(self) -> bool:
        return all(param.is_bound for param in self.parameters)

    def is_constant(self) -> bool:
        """True if every parameter is a constant cell (value can never change)"""
        return all(param.is_constant for param in self.parameters)

    def variables(self) -> List[Binding]:
        """Non-constant parameter cells, in order, without repeats"""
        seen = []
        for param in self.parameters:
            if not param.is_constant and param not in seen:
                seen.append(param)
        return seen

    def clear_bindings(self):
        for param in self.parameters:
            param.clear()

    def unify_with(self, fact: 'Predicate', bound: Optional[List[Binding]] = None) -> bool:
        """
        Unify this (possibly partially bound) predicate with a ground fact

        Already bound parameters must equal the fact's values; unbound ones get
        bound. If any parameter fails, every binding made during this call is
        undone; bindings that existed before the call are kept.

        Args:
            fact: Fully grounded predicate
            bound: Optional list that receives the cells bound by this call

        Returns:
            True if unification succeeded
        """
        if self.name != fact.name or self.arity != fact.arity:
            return False

        newly_bound: List[Binding] = []
        for param, source in zip(self.parameters, fact.parameters):
            source_value = source.value
            if source_value is None:
                raise ValueError(f"Cannot unify with non-ground predicate {fact}")

            if param.is_bound:
                if param.value == source_value:
                    continue
            elif param.bind(source_value):
                newly_bound.append(param)
                continue

            for binding in newly_bound:
                binding.clear()
            return False

        if bound is not None:
            bound.extend(newly_bound)
        return True

    def grounded_clone(self) -> 'Predicate':
        """
        Copy this predicate with constant parameters

        Raises:
            ValueError: if any parameter is unbound
        """
        values = self.values
        if any(value is None for value in values):
            raise ValueError(f"Cannot clone non-ground predicate {self}")
        return Predicate.ground(self.name, values)

    def compare(self, other: 'Predicate') -> int:
        mine, theirs = self.sort_key, other.sort_key
        return (mine > theirs) - (mine < theirs)

    def __lt__(self, other: 'Predicate') -> bool:
        return self.sort_key < other.sort_key

    def __eq__(self, other) -> bool:
        """Same name, same arity and every parameter pair bound equal or linked"""
        if not isinstance(other, Predicate):
            return False
        if self.name != other.name or self.arity != other.arity:
            return False
        return all(a.same_as(b) for a, b in zip(self.parameters, other.parameters))

    def __hash__(self) -> int:
        # Only stable for grounded predicates; templates are never hashed
        # while their bindings change.
        return hash(self.key)

    def __str__(self) -> str:
        if not self.parameters:
            return self.name
        args = [value if value is not None else "$unbound" for value in self.values]
        return f"{self.name}({','.join(args)})"

    def __repr__(self) -> str:
        return f"Predicate({self})"


def _remove_identical(items: List[Predicate], member: Predicate) -> bool:
    for position, item in enumerate(items):
        if item is member:
            del items[position]
            return True
    return False


class FactSet:
    """
    Insertion-ordered set of predicates

    Adding a predicate equal to a member is a no-op. Constant (ground) members
    are indexed by value for O(1) membership; template members are compared by
    value at query time because their bindings change during grounding.

    Ordering is lexicographic over the members in insertion order: the first
    differing member decides, and a proper prefix sorts first.
    """

    def __init__(self, predicates: Iterable[Predicate] = ()):
        self._items: List[Predicate] = []
        self._index: Dict[Tuple, Predicate] = {}
        self._templates: List[Predicate] = []
        self._by_name: Dict[str, List[Predicate]] = {}
        self.update(predicates)

    def add(self, predicate: Predicate) -> bool:
        """
        Add a predicate unless an equal one is already present

        Returns:
            True if the predicate was added
        """
        if predicate is None:
            raise ValueError("FactSet cannot hold None")
        if predicate in self:
            return False
        self._items.append(predicate)
        if predicate.is_constant():
            self._index[predicate.key] = predicate
        else:
            self._templates.append(predicate)
        self._by_name.setdefault(predicate.name, []).append(predicate)
        return True

    def update(self, predicates: Iterable[Predicate]):
        for predicate in predicates:
            self.add(predicate)

    def remove(self, predicate: Predicate):
        """Remove the member equal to `predicate` (KeyError if absent)"""
        member = self._find(predicate)
        if member is None:
            raise KeyError(str(predicate))
        _remove_identical(self._items, member)
        _remove_identical(self._by_name[member.name], member)
        if not _remove_identical(self._templates, member):
            del self._index[member.key]

    def discard(self, predicate: Predicate):
        if predicate in self:
            self.remove(predicate)

    def _find(self, predicate: Predicate) -> Optional[Predicate]:
        if predicate.is_grounded():
            member = self._index.get(predicate.key)
            if member is not None:
                return member
        for template in self._templates:
            if template == predicate:
                return template
        return None

    def __contains__(self, predicate) -> bool:
        if not isinstance(predicate, Predicate):
            return False
        return self._find(predicate) is not None

    def contains_all(self, other: Iterable[Predicate]) -> bool:
        """Subset test: every predicate of `other` is a member of this set"""
        return all(predicate in self for predicate in other)

    def by_name(self, name: str) -> List[Predicate]:
        """Members with the given predicate name, in insertion order"""
        return list(self._by_name.get(name, ()))

    def is_grounded(self) -> bool:
        return all(predicate.is_grounded() for predicate in self._items)

    def clear_bindings(self):
        for predicate in self._items:
            predicate.clear_bindings()

    def keys(self) -> List[Tuple]:
        return [predicate.key for predicate in self._items]

    def compare(self, other: 'FactSet') -> int:
        for mine, theirs in zip(self._items, other._items):
            result = mine.compare(theirs)
            if result != 0:
                return result
        return (len(self) > len(other)) - (len(self) < len(other))

    def __lt__(self, other: 'FactSet') -> bool:
        return self.compare(other) < 0

    def same_members(self, other: 'FactSet') -> bool:
        """Set equality, ignoring insertion order"""
        return len(self) == len(other) and self.contains_all(other)

    def __getitem__(self, index: int) -> Predicate:
        return self._items[index]

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __str__(self) -> str:
        return ",".join(str(predicate) for predicate in self._items)

    def __repr__(self) -> str:
        return f"FactSet({self})"
