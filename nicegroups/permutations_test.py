"""Unit tests for permutations.py

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

import itertools

import numpy as np
import pytest
import sympy.combinatorics as comb

from nicegroups import permutations
from nicegroups.permutations import Permutation


def test_permutation() -> None:
    """Construction, comparison, and composition of permutations."""
    perms = [Permutation(seq) for seq in ([0, 1, 2], [1, 2, 0], [2, 0, 1])]
    assert perms[0] < perms[1] < perms[2]
    assert perms[0] == permutations.identity(3)
    assert perms[1].degree == 3

    # the product p * q applies p first
    shift, swap = permutations.from_cycles(3, (0, 1, 2)), permutations.from_cycles(3, (0, 1))
    assert (shift * swap)(0) == swap(shift(0)) == 0
    assert isinstance(shift * swap, Permutation)
    assert isinstance(~shift, Permutation)
    assert shift * ~shift == permutations.identity(3)

    # sympy permutations are converted, and Permutations are left alone
    sympy_perm = comb.Permutation([1, 0, 2])
    assert Permutation.from_sympy(sympy_perm) == swap
    assert Permutation.from_sympy(swap) is swap
    assert isinstance(shift * sympy_perm, Permutation)


def test_degree_mismatch() -> None:
    """Permutations of different degrees cannot be multiplied."""
    with pytest.raises(permutations.DegreeMismatchError, match="degree 3"):
        permutations.from_cycles(3, (0, 1)) * permutations.from_cycles(4, (0, 1))
    with pytest.raises(permutations.DegreeMismatchError):
        permutations.check_degree(permutations.identity(5), 4)
    with pytest.raises(TypeError, match="Expected a permutation"):
        permutations.check_degree([0, 1, 2], 3)  # type:ignore[arg-type]
    permutations.check_degree(comb.Permutation(2), 3)


def test_construction_errors() -> None:
    """Invalid degrees and cycles."""
    with pytest.raises(ValueError, match="nonnegative"):
        permutations.identity(-1)
    with pytest.raises(ValueError, match="does not act on the points"):
        permutations.from_cycles(3, (0, 3))
    assert permutations.from_cycles(3) == permutations.identity(3)
    assert permutations.identity(0).size == 0


def test_tensor_product() -> None:
    """Tensor products act on disjoint sets of points."""
    aa = permutations.from_cycles(2, (0, 1))
    bb = permutations.from_cycles(3, (0, 1, 2))
    assert aa @ bb == permutations.from_cycles(5, (0, 1), (2, 3, 4))
    assert (aa @ bb).degree == 5


def test_matrices() -> None:
    """Permutation matrices are right-acting, and lifting them is a homomorphism."""
    degree = 4
    for aa, bb in itertools.product(
        [permutations.from_cycles(degree, (0, 1)), permutations.from_cycles(degree, (1, 2, 3))],
        repeat=2,
    ):
        assert np.array_equal(aa.to_matrix() @ bb.to_matrix(), (aa * bb).to_matrix())
        assert np.array_equal(aa.to_sparse_matrix().toarray(), aa.to_matrix())

    perm = permutations.from_cycles(degree, (0, 2))
    vector = np.arange(degree)
    assert np.array_equal(vector @ perm.to_matrix(), [2, 1, 0, 3])
