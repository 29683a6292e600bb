"""Permutations of a finite set of points

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

Permutations act on the points 0, 1, ..., degree - 1.  Following SymPy, the product p * q of two
permutations applies p first and q second, so that (p * q)(i) == q(p(i)).
"""

from __future__ import annotations

import typing
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import scipy.sparse
import sympy.combinatorics as comb


class DegreeMismatchError(ValueError):
    """A permutation acts on a different number of points than expected."""


class Permutation(comb.Permutation):
    """Wrapper for SymPy Permutation class.

    Supports sorting permutations (by their rank), taking their tensor product, and converting them
    into permutation matrices.  Multiplying permutations of different degrees is an error, rather
    than silently padding the smaller permutation with fixed points.
    """

    @staticmethod
    def from_sympy(other: comb.Permutation) -> Permutation:
        """Convert a SymPy Permutation into a Permutation."""
        if isinstance(other, Permutation):
            return other
        return Permutation(other.array_form)

    @property
    def degree(self) -> int:
        """Number of points that this permutation acts on."""
        return self.size

    def __mul__(self, other: comb.Permutation) -> Permutation:
        if isinstance(other, comb.Permutation):
            check_degree(other, self.size)
            return Permutation.from_sympy(super().__mul__(other))
        return NotImplemented

    def __add__(self, other: object) -> typing.Any:
        return NotImplemented  # pragma: no cover

    def __lt__(self, other: Permutation) -> bool:
        return self.rank() < other.rank()

    def __matmul__(self, other: Permutation) -> Permutation:
        """Take the "tensor product" of two permutations.

        If p and q act on m and n points, then p @ q acts on m + n points: p acts on the first m
        points, and q acts on the last n.  If p and q are members of groups G and H, then p @ q is a
        member of the direct product of G and H.
        """
        return Permutation(self.array_form + [val + self.size for val in other.array_form])

    def to_matrix(self) -> npt.NDArray[np.int_]:
        """Lift this permutation object to a permutation matrix.

        For consistency with how SymPy composes permutations, the permutation matrix constructed
        here is right-acting, meaning that it acts on a vector v as v --> v @ p.to_matrix().  This
        convension ensures that this lift is a homomorphism on SymPy Permutation objects, which is
        to say that (p * q).to_matrix() = p.to_matrix() @ q.to_matrix().
        """
        matrix = np.zeros([self.size] * 2, dtype=int)
        for ii in range(self.size):
            matrix[ii, self(ii)] = 1
        return matrix

    def to_sparse_matrix(self) -> scipy.sparse.csr_array:
        """Lift this permutation object to a sparse (right-acting) permutation matrix."""
        rows = np.arange(self.size, dtype=int)
        cols = np.array(self.array_form, dtype=int)
        data = np.ones(self.size, dtype=int)
        return scipy.sparse.csr_array((data, (rows, cols)), shape=(self.size, self.size))


def identity(degree: int) -> Permutation:
    """The identity permutation on a given number of points."""
    if degree < 0:
        raise ValueError(f"Permutation degrees must be nonnegative (provided: {degree})")
    return Permutation(list(range(degree)))


def from_cycles(degree: int, *cycles: Sequence[int]) -> Permutation:
    """Construct a permutation of a given degree from disjoint cycles."""
    for cycle in cycles:
        if any(not 0 <= point < degree for point in cycle):
            raise ValueError(f"Cycle {tuple(cycle)} does not act on the points 0, ..., {degree - 1}")
    if not cycles:
        return identity(degree)
    return Permutation([list(cycle) for cycle in cycles], size=degree)


def check_degree(perm: comb.Permutation, degree: int) -> None:
    """Raise an error if a permutation does not act on a given number of points."""
    if not isinstance(perm, comb.Permutation):
        raise TypeError(f"Expected a permutation, not {type(perm).__name__}: {perm}")
    if perm.size != degree:
        raise DegreeMismatchError(
            f"Expected a permutation of degree {degree} (provided: {perm.size})"
        )
