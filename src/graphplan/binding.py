"""
Variable Bindings for Action Grounding

A binding is one unification cell: a schema variable such as X in
`kup :: mam(penize), zbozi(X) => mam(X)`, or a literal constant such as
`penize`. Cells live in a BindingArena, an index-addressed disjoint-set
(union-find) structure:

- linked cells form one equivalence class and share a single value
- a cell may be marked distinct from other cells; no member of its class
  may then take a value that a distinct partner already holds
- constant cells are created bound and are never cleared

Example:
    arena = BindingArena()
    x, y = arena.new_binding(), arena.new_binding()
    x.link(y)
    x.bind("home")        # y.value == "home" too
    x.clear()             # both unbound again, still linked
"""

from typing import Dict, List, Optional, Set


class BindingArena:
    """
    Union-find arena of binding cells

    Values are stored on the class root only. Each root also keeps the member
    list of its class so that binding can check the distinct partners of every
    member before committing.
    """

    def __init__(self):
        self._parent: List[int] = []
        self._rank: List[int] = []
        self._value: List[Optional[str]] = []
        self._constant: List[bool] = []
        self._distinct: List[Set[int]] = []
        self._members: Dict[int, List[int]] = {}

    def new_binding(self, value: Optional[str] = None) -> 'Binding':
        """
        Allocate a new cell

        Args:
            value: If given, the cell is a constant bound to this value

        Returns:
            Handle to the new cell
        """
        index = len(self._parent)
        self._parent.append(index)
        self._rank.append(0)
        self._value.append(value)
        self._constant.append(value is not None)
        self._distinct.append(set())
        self._members[index] = [index]
        return Binding(self, index)

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, index: int) -> int:
        """Return the root of the class containing `index` (with path compression)"""
        root = index
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[index] != root:
            self._parent[index], index = root, self._parent[index]
        return root

    def value_of(self, index: int) -> Optional[str]:
        return self._value[self.find(index)]

    def members_of(self, index: int) -> List[int]:
        return self._members[self.find(index)]

    def is_constant(self, index: int) -> bool:
        return self._constant[index]

    def bind(self, index: int, value: str) -> bool:
        """
        Bind the class of `index` to `value`

        Fails without any mutation if the class already holds a different
        value or if a distinct partner of any member holds `value`.
        """
        if value is None:
            raise ValueError("Cannot bind a cell to None; use clear() instead")

        root = self.find(index)
        current = self._value[root]
        if current is not None:
            return current == value

        for member in self._members[root]:
            for partner in self._distinct[member]:
                if self.value_of(partner) == value:
                    return False

        self._value[root] = value
        return True

    def link(self, first: int, second: int) -> bool:
        """
        Merge the classes of two cells

        If either class is already bound this degenerates to binding the
        other one to that value.
        """
        root_a = self.find(first)
        root_b = self.find(second)
        if root_a == root_b:
            return True
        if self._classes_distinct(root_a, root_b):
            return False

        value_a = self._value[root_a]
        value_b = self._value[root_b]
        if value_a is not None and value_b is not None:
            return value_a == value_b
        if value_a is not None:
            return self.bind(second, value_a)
        if value_b is not None:
            return self.bind(first, value_b)

        if self._rank[root_a] < self._rank[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        if self._rank[root_a] == self._rank[root_b]:
            self._rank[root_a] += 1
        self._members[root_a].extend(self._members.pop(root_b))
        return True

    def clear(self, index: int):
        """Reset the class of `index` to unbound (constants are left alone)"""
        if self._constant[index]:
            return
        self._value[self.find(index)] = None

    def clear_all(self):
        """Reset every non-constant cell in the arena"""
        for root in self._members:
            if not self._constant[root]:
                self._value[root] = None

    def mark_distinct(self, first: int, second: int):
        if self.find(first) == self.find(second):
            raise ValueError("A binding cannot be distinct from itself or a linked binding")
        self._distinct[first].add(second)
        self._distinct[second].add(first)

    def are_distinct(self, first: int, second: int) -> bool:
        return self._classes_distinct(self.find(first), self.find(second))

    def _classes_distinct(self, root_a: int, root_b: int) -> bool:
        members_b = set(self._members[root_b])
        for member in self._members[root_a]:
            if self._distinct[member] & members_b:
                return True
        return False


class Binding:
    """
    Handle to one cell of a BindingArena

    Two handles are equal when they address the same cell. Use `same_as()`
    for the looser "equal value or linked" comparison used by predicates.
    """

    __slots__ = ('arena', 'index')

    def __init__(self, arena: BindingArena, index: int):
        self.arena = arena
        self.index = index

    @property
    def value(self) -> Optional[str]:
        return self.arena.value_of(self.index)

    @property
    def is_bound(self) -> bool:
        return self.value is not None

    @property
    def is_constant(self) -> bool:
        return self.arena.is_constant(self.index)

    def bind(self, value: str) -> bool:
        """
        Bind this cell and every linked cell to `value`

        Returns:
            True on success, False if a distinct partner already holds the
            value or the class is bound to something else
        """
        return self.arena.bind(self.index, value)

    def link(self, other: 'Binding') -> bool:
        """
        Link this cell with `other` so that both always share one value

        Returns:
            False if the two cells are marked distinct or hold different values
        """
        self._check_same_arena(other)
        return self.arena.link(self.index, other.index)

    def clear(self):
        self.arena.clear(self.index)

    def mark_distinct(self, other: 'Binding'):
        """Record that this cell and `other` must never hold the same value"""
        self._check_same_arena(other)
        self.arena.mark_distinct(self.index, other.index)

    def is_distinct_from(self, other: 'Binding') -> bool:
        if other.arena is not self.arena:
            return False
        return self.arena.are_distinct(self.index, other.index)

    def same_as(self, other: 'Binding') -> bool:
        """True if both cells hold the same value, or are unbound and linked"""
        mine, theirs = self.value, other.value
        if mine is not None or theirs is not None:
            return mine == theirs
        if other.arena is not self.arena:
            return False
        return self.arena.find(self.index) == self.arena.find(other.index)

    def _check_same_arena(self, other: 'Binding'):
        if other.arena is not self.arena:
            raise ValueError("Bindings from different arenas cannot be related")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Binding):
            return False
        return self.arena is other.arena and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self.arena), self.index))

    def __repr__(self) -> str:
        value = self.value
        if value is None:
            return f"Binding(#{self.index}, unbound)"
        return f"Binding(#{self.index}, {value!r})"
