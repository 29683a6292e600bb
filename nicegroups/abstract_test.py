"""Unit tests for abstract.py

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
import math
import unittest.mock

import galois
import numpy as np
import pytest

from nicegroups import abstract, bsgs, cache
from nicegroups.permutations import DegreeMismatchError, Permutation, from_cycles


def test_permutation_group() -> None:
    """Permutation groups and their members."""
    gens = [Permutation(seq) for seq in ([0, 1, 2], [1, 2, 0], [2, 0, 1])]
    group = abstract.permutation_group(*gens)
    assert all(perm in group for perm in gens)
    assert group.order == 3
    assert group.num_generators == 3
    assert group.random() in group
    assert group.random(seed=0) == group.random(seed=0)
    assert group.is_abelian
    assert group.parent == abstract.SymmetricGroup(3)
    assert group.degree == 3
    assert group == abstract.CyclicGroup(3)
    assert group == abstract.permutation_group([1, 2, 0])

    group = abstract.permutation_group(*itertools.permutations([0, 1, 2]))
    assert not group.is_abelian
    assert group == abstract.SymmetricGroup(3)

    with pytest.raises(ValueError, match="degree of a permutation group"):
        abstract.permutation_group()
    assert abstract.permutation_group(degree=3).is_trivial


def test_s4_scenario() -> None:
    """The symmetric group on four points, generated by a transposition and a 4-cycle."""
    group = abstract.permutation_group(from_cycles(4, (0, 1)), from_cycles(4, (0, 1, 2, 3)))
    assert group.order == 24
    assert from_cycles(4, (0, 3), (1, 2)) in group
    with pytest.raises(DegreeMismatchError):
        group.contains(from_cycles(5, (0, 1)))

    subgroup = group.subgroup(group.generators[1:])
    assert subgroup.order == 4
    assert group.order % subgroup.order == 0
    assert all(member in group for member in subgroup.generate())


def test_lazy_chain() -> None:
    """Stabilizer chains are computed on first use only."""
    group = abstract.SymmetricGroup(4)
    assert not cache.is_cached(group, "chain")
    with unittest.mock.patch.object(
        abstract.NiceFiniteGroup,
        "compute_chain",
        autospec=True,
        side_effect=abstract.NiceFiniteGroup.compute_chain,
    ) as compute_chain:
        assert group.order == 24
        assert group.order == 24
        assert group.contains(group.identity)
    assert compute_chain.call_count == 1
    assert cache.is_cached(group, "chain")


def test_compute_chain_options() -> None:
    """Chains with prescribed or randomized bases describe the same group."""
    group = abstract.SymmetricGroup(5)
    chain = group.compute_chain(base=[4, 3])
    chain.verify()
    assert chain.base[:2] == (4, 3)
    assert chain.order == 120
    for seed in range(3):
        chain = group.compute_chain(randomized=True, seed=seed)
        chain.verify()
        assert chain.order == 120


def test_subgroups() -> None:
    """Subgroups are routed to the root group, and share its nice monomorphism."""
    symmetric = abstract.SymmetricGroup(4)
    dihedral = abstract.DihedralGroup(4)
    assert dihedral.parent == symmetric
    assert not dihedral.is_root and symmetric.is_root

    # a subgroup of a subgroup is a subgroup of the root
    rotation = dihedral.generators[0]
    rotations = dihedral.subgroup([rotation], order=4)
    assert rotations.parent is dihedral.parent
    assert rotations.is_subgroup(dihedral)
    assert not dihedral.is_subgroup(rotations)
    assert rotations.order == 4
    assert "Subgroup" in str(rotations)

    # subgroup members are members of the root, and delegated operations agree with the root
    for aa, bb in itertools.product(rotations.generate(), dihedral.generators):
        assert rotations.compose(aa, bb) == symmetric.compose(aa, bb) == aa * bb
        assert rotations.inverse(aa) == ~aa
        assert rotations.nice_image(aa) == aa
        assert rotations.eqv(aa, aa)

    with pytest.raises(ValueError, match="does not match the order"):
        dihedral.subgroup([rotation], order=3).order
    with pytest.raises(ValueError, match="positive"):
        dihedral.subgroup([rotation], order=0)
    with pytest.raises(DegreeMismatchError):
        dihedral.subgroup([from_cycles(3, (0, 1))])

    trivial = dihedral.trivial_subgroup()
    assert trivial.order == 1
    assert trivial.is_trivial
    assert trivial.elements_list() == [symmetric.identity]


def test_nice_preimage() -> None:
    """Preimages of nice images are the original group members."""
    for group in [
        abstract.DihedralGroup(6),
        abstract.SignedPermutationGroup(3),
        abstract.SpecialLinearGroup(2, 3),
        abstract.CyclicGroup(2) * abstract.SignedPermutationGroup(2),
    ]:
        for member in group.generate():
            preimage = group.nice_preimage(group.nice_image(member))
            assert group.eqv(preimage, member)

    group = abstract.DihedralGroup(5)
    with pytest.raises(bsgs.NotInGroupError):
        group.nice_preimage(from_cycles(5, (0, 1)))


def test_homomorphism() -> None:
    """Nice images of products are products of nice images."""
    for group in [
        abstract.SignedPermutationGroup(3),
        abstract.SpecialLinearGroup(2, 2),
        abstract.QuaternionGroup(),
        abstract.AbelianGroup(2, 3) * abstract.CyclicGroup(2),
    ]:
        members = group.elements_list()
        for aa, bb in itertools.product(members[:12], repeat=2):
            image = group.nice_image(group.compose(aa, bb))
            assert image == group.nice_image(aa) * group.nice_image(bb)
            assert group.eqv(group.compose(aa, group.inverse(aa)), group.identity)


def test_root_must_implement_operations() -> None:
    """A group that is its own parent cannot delegate its group operations."""

    class IncompleteGroup(abstract.NiceFiniteGroup):
        """Root group that forgot to implement its group operations."""

    group = IncompleteGroup([])
    assert group.parent is group
    for method, args in [
        ("compose", (None, None)),
        ("inverse", (None,)),
        ("eqv", (None, None)),
        ("nice_image", (None,)),
    ]:
        with pytest.raises(NotImplementedError, match=method):
            getattr(group, method)(*args)
    with pytest.raises(NotImplementedError, match="identity"):
        group.identity


def test_named_groups() -> None:
    """Orders of named groups."""
    assert abstract.TrivialGroup().order == 1
    assert str(abstract.TrivialGroup()) == "TrivialGroup"
    assert abstract.CyclicGroup(1).order == 1
    assert abstract.CyclicGroup(6).order == 6
    assert abstract.AbelianGroup(2, 3, 4).order == 24
    assert abstract.AbelianGroup(2, 3, 4).is_abelian
    assert abstract.AbelianGroup(1, 2).order == 2
    assert all(abstract.DihedralGroup(sides).order == 2 * sides for sides in range(1, 7))
    assert not abstract.DihedralGroup(3).is_abelian
    assert all(
        abstract.AlternatingGroup(degree).order == max(math.factorial(degree) // 2, 1)
        for degree in range(7)
    )
    assert all(
        abstract.SymmetricGroup(degree).order == math.factorial(degree) for degree in range(7)
    )
    assert abstract.QuaternionGroup().order == 8
    assert not abstract.QuaternionGroup().is_abelian
    assert abstract.SymmetricGroup(3).nice_preimage(from_cycles(3, (0, 1))) == from_cycles(
        3, (0, 1)
    )
    assert repr(abstract.SymmetricGroup(3)) == "<SymmetricGroup(3)>"

    for order in [0, -1]:
        with pytest.raises(ValueError, match="positive"):
            abstract.CyclicGroup(order)
    with pytest.raises(ValueError, match="positive"):
        abstract.AbelianGroup(2, 0)
    with pytest.raises(ValueError, match="positive number of sides"):
        abstract.DihedralGroup(0)
    with pytest.raises(ValueError, match="nonnegative"):
        abstract.SymmetricGroup(-1)


def test_from_table() -> None:
    """Groups constructed from multiplication tables."""
    table = [
        [0, 1, 2, 3],
        [1, 0, 3, 2],
        [2, 3, 0, 1],
        [3, 2, 1, 0],
    ]
    group = abstract.NiceFiniteGroup.from_table(table)
    assert group.order == 4
    assert group.is_abelian
    assert all(group.element_order(member) <= 2 for member in group.generate())


def test_element_order() -> None:
    """Orders of group members."""
    group = abstract.SymmetricGroup(6)
    assert group.element_order(group.identity) == 1
    assert group.element_order(from_cycles(6, (0, 1), (2, 3, 4))) == 6
    assert abstract.SymmetricGroup(0).element_order(abstract.SymmetricGroup(0).identity) == 1

    group = abstract.SpecialLinearGroup(2, 3)
    for member in group.elements_list()[:10]:
        order = group.element_order(member)
        power = group.identity
        for _ in range(order):
            power = group.compose(power, member)
        assert group.eqv(power, group.identity)


def test_signed_permutations() -> None:
    """The group of signed permutations."""
    for degree in range(4):
        group = abstract.SignedPermutationGroup(degree)
        assert group.order == 2**degree * math.factorial(degree)
        assert group.degree == 2 * degree

    group = abstract.SignedPermutationGroup(3)
    aa, bb = (2, -3, 1), (-1, 3, 2)
    assert group.compose(aa, bb) == (3, -2, -1)
    assert group.compose(aa, group.inverse(aa)) == group.identity
    assert np.array_equal(
        group.to_matrix(group.compose(aa, bb)), group.to_matrix(aa) @ group.to_matrix(bb)
    )
    assert np.array_equal(group.to_matrix(aa), [[0, 1, 0], [0, 0, -1], [1, 0, 0]])
    product = group.to_sparse_matrix(aa) @ group.to_sparse_matrix(bb)
    assert np.array_equal(product.toarray(), group.to_matrix(group.compose(aa, bb)))
    assert aa in group
    with pytest.raises(DegreeMismatchError):
        group.nice_image((1, 2))
    with pytest.raises(ValueError, match="Invalid signed permutation"):
        group.nice_image((1, 1, 2))

    # signed permutations without sign changes form a subgroup isomorphic to a symmetric group
    subgroup = group.subgroup([(2, 1, 3), (2, 3, 1)])
    assert subgroup.order == 6
    assert (-1, 2, 3) not in subgroup


def test_matrix_groups() -> None:
    """Groups of matrices over finite fields."""
    field = galois.GF(3)
    group = abstract.MatrixGroup(field([[1, 1], [0, 1]]), field([[2, 0], [0, 2]]))
    assert group.order == 6
    assert group.is_abelian
    assert group.field is field
    assert group.dimension == 2
    assert field([[1, 2], [0, 1]]) in group
    assert field([[0, 1], [2, 0]]) not in group
    assert group == group.subgroup(group.generators)
    assert group.is_subgroup(abstract.SpecialLinearGroup(2, 3))
    scaling = abstract.MatrixGroup(field([[2, 0], [0, 1]]))
    assert not scaling.is_subgroup(abstract.SpecialLinearGroup(2, 3))

    with pytest.raises(ValueError, match="not invertible"):
        group.nice_image(field([[1, 1], [1, 1]]))
    with pytest.raises(DegreeMismatchError):
        group.nice_image(field.Identity(3))
    with pytest.raises(ValueError, match="is not over"):
        group.nice_image(galois.GF(5).Identity(2))
    with pytest.raises(ValueError, match="requires a field and a dimension"):
        abstract.MatrixGroup()
    with pytest.raises(ValueError, match="finite field"):
        abstract.MatrixGroup(np.eye(2, dtype=int))
    assert abstract.MatrixGroup(field=field, dimension=3).is_trivial


@pytest.mark.parametrize("dimension,field", [(2, 2), (2, 3), (2, 4), (3, 2)])
def test_SL(dimension: int, field: int) -> None:
    """Special linear group."""
    group = abstract.SL(dimension, field=field)
    order = np.prod([field**dimension - field**jj for jj in range(dimension)]) // (field - 1)
    mats = tuple(abstract.SL.iter_mats(dimension, field))
    assert group.order == len(mats) == order
    assert all(mat in group for mat in mats)

    gens = group.generators
    gen_mats = group.get_generating_mats(dimension, field)
    assert np.array_equal(gens[0], gen_mats[0])
    assert np.array_equal(gens[1], gen_mats[1])


def test_direct_products() -> None:
    """Direct products of groups."""
    cycle = abstract.CyclicGroup(2)
    identity, shift = cycle.generate()
    group = abstract.NiceFiniteGroup.product(cycle, cycle)
    assert group.order == 4
    assert group.generators == [(shift, identity), (identity, shift)]
    assert group.nice_image((shift, shift)) == shift @ shift
    assert group == cycle * cycle == cycle**2
    assert group.factors == (cycle, cycle)
    assert (shift, identity) in group

    mixed = abstract.SignedPermutationGroup(2) * abstract.SL(2, 2)
    assert mixed.order == 8 * 6
    assert mixed.random(seed=0) in mixed
    with pytest.raises(DegreeMismatchError):
        mixed.nice_image(((1, 2),))


def test_conjugation() -> None:
    """Left conjugate groups."""
    symmetric = abstract.SymmetricGroup(4)
    group = abstract.permutation_group(from_cycles(4, (0, 1)))
    by = from_cycles(4, (1, 2))
    assert group.left_conjugate(by, from_cycles(4, (0, 1))) == from_cycles(4, (0, 2))
    conjugate = group.left_conjugate_group(by)
    assert conjugate.order == 2
    assert from_cycles(4, (0, 2)) in conjugate
    assert conjugate.parent == symmetric


def test_equality() -> None:
    """Groups are equal if they share a parent and contain the same members."""
    assert abstract.SymmetricGroup(3) == abstract.SymmetricGroup(3)
    assert abstract.SymmetricGroup(3) != abstract.SymmetricGroup(4)
    assert abstract.CyclicGroup(3) == abstract.AlternatingGroup(3)
    assert abstract.CyclicGroup(4) != abstract.DihedralGroup(2)
    assert abstract.SymmetricGroup(2) != abstract.SignedPermutationGroup(1)
    assert abstract.SymmetricGroup(3) != "SymmetricGroup(3)"
    assert hash(abstract.CyclicGroup(3)) == hash(abstract.AlternatingGroup(3))


def test_enumeration_warning() -> None:
    """Enumerating large groups issues a warning."""
    group = abstract.SymmetricGroup(4)
    with unittest.mock.patch("nicegroups.abstract.ENUMERATION_WARNING_ORDER", 10):
        with pytest.warns(UserWarning, match="Enumerating all 24 members"):
            group.elements_list()


@pytest.mark.parametrize("seed", range(5))
def test_random_subgroups(seed: int) -> None:
    """Orders of subgroups divide the order of their parent, which contains all of their members."""
    parent = abstract.SymmetricGroup(5)
    generators = [parent.random(seed=seed + 100 * ii) for ii in range(2)]
    subgroup = parent.subgroup(generators)
    subgroup.chain.verify()
    assert parent.order % subgroup.order == 0
    assert all(member in parent for member in subgroup.generate())
    assert len(set(subgroup.generate())) == subgroup.order
