"""Indexed families and product decompositions of finite groups

Copyright 2023 The nicegroups Authors and Infleqtion Inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

import functools
import itertools
import math
import operator
import typing
from collections.abc import Callable, Iterator, Sequence

from nicegroups.bsgs import NotInGroupError

if typing.TYPE_CHECKING:
    from nicegroups.abstract import NiceFiniteGroup

Element = typing.Any


class IndexedFamily:
    """A finite family of elements in bijection with the integers 0, 1, ..., size - 1.

    Elements are computed on demand from their index (and vice versa), so an IndexedFamily can
    describe, say, all members of a group of astronomical order.
    """

    _size: int
    _at: Callable[[int], Element]
    _find: Callable[[Element], int]

    def __init__(
        self, size: int, at: Callable[[int], Element], find: Callable[[Element], int]
    ) -> None:
        self._size = size
        self._at = at
        self._find = find

    @property
    def size(self) -> int:
        """Number of elements in this family, which may exceed the range of len()."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def at(self, index: int) -> Element:
        """The element with a given index."""
        index = operator.index(index)
        if not 0 <= index < self._size:
            raise IndexError(f"Index must be between 0 and {self._size - 1} (provided: {index})")
        return self._at(index)

    def __getitem__(self, index: int) -> Element:
        return self.at(index)

    def find(self, element: Element) -> int:
        """The index of an element of this family."""
        return self._find(element)

    def __contains__(self, element: Element) -> bool:
        try:
            self._find(element)
        except NotInGroupError:
            return False
        return True

    def __iter__(self) -> Iterator[Element]:
        for index in range(self._size):
            yield self._at(index)

    @staticmethod
    def from_sequence(elements: Sequence[Element]) -> IndexedFamily:
        """Indexed family of an explicit sequence of (hashable) elements."""
        indices = {element: index for index, element in enumerate(elements)}

        def find(element: Element) -> int:
            if element not in indices:
                raise NotInGroupError(f"Element {element} is not in this family")
            return indices[element]

        return IndexedFamily(len(elements), elements.__getitem__, find)


class FiniteGroupDecomposition:
    """Decomposition of a finite group as an ordered product of finite sets.

    Every member of the group is equal to compose(t_0, t_1, ..., t_{k-1}) for exactly one choice of
    t_i in the i-th set.  For a group described by a stabilizer chain, the sets are the transversals
    of the chain, so the group can be enumerated (or summed over) one set at a time.
    """

    _group: NiceFiniteGroup
    _sets: tuple[tuple[Element, ...], ...]

    def __init__(self, group: NiceFiniteGroup, sets: Sequence[Sequence[Element]]) -> None:
        self._group = group
        self._sets = tuple(tuple(elements) for elements in sets)

    @property
    def group(self) -> NiceFiniteGroup:
        """The decomposed group."""
        return self._group

    @property
    def sets(self) -> tuple[tuple[Element, ...], ...]:
        """The sets whose ordered product is the group."""
        return self._sets

    @property
    def size(self) -> int:
        """Number of choices of one element from each set, equal to the order of the group."""
        return math.prod(len(elements) for elements in self._sets)

    def compose_choice(self, choice: Sequence[int]) -> Element:
        """The group member corresponding to a choice of one element (by index) from each set."""
        if len(choice) != len(self._sets):
            raise ValueError(f"A choice requires {len(self._sets)} indices (provided: {choice})")
        return functools.reduce(
            self._group.compose,
            [elements[index] for elements, index in zip(self._sets, choice)],
            self._group.identity,
        )

    def __iter__(self) -> Iterator[Element]:
        for choice in itertools.product(*self._sets):
            yield functools.reduce(self._group.compose, choice, self._group.identity)
