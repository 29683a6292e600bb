"""Module for abstract finite groups, handled through nice monomorphisms

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

All groups in this module are finite and "nice": they come equipped with an injective homomorphism
(a nice monomorphism) into a symmetric group.  Membership tests, group orders, enumeration, uniform
sampling, and the inverse of the nice monomorphism are all computed with a stabilizer chain that is
built from the permutation images of the generators of a group; see nicegroups.bsgs.

Group members compose in the same order as SymPy permutations: compose(x, y) is "x, then y", and the
nice monomorphism satisfies nice_image(compose(x, y)) == nice_image(x) * nice_image(y).

Every group has a parent: a root group that defines the group operations and the nice monomorphism
for all members of a given type.  For example, permutations of n points are members of the symmetric
group of degree n, whose nice monomorphism is the identity map.  Subgroups of any group are always
constructed as subgroups of the root, so members of different subgroups are directly comparable.
"""

from __future__ import annotations

import dataclasses
import functools
import itertools
import math
import operator
import typing
import warnings
from collections.abc import Iterator, Sequence

import galois
import numpy as np
import numpy.typing as npt
import scipy.sparse
import sympy.combinatorics as comb

from nicegroups import bsgs, representations
from nicegroups.cache import cached_once
from nicegroups.families import FiniteGroupDecomposition, IndexedFamily
from nicegroups.permutations import DegreeMismatchError, Permutation, check_degree, from_cycles
from nicegroups.permutations import identity as identity_permutation

DEFAULT_FIELD_ORDER = 2
ENUMERATION_WARNING_ORDER = 10**6

Element = typing.Any
SignedPermutation = tuple[int, ...]


################################################################################
# parents of groups


@dataclasses.dataclass(frozen=True)
class OwnParent:
    """Tag for a root group, which is its own parent and defines its own group operations."""


@dataclasses.dataclass(frozen=True)
class DelegatesToParent:
    """Tag for a group whose group operations and nice monomorphism belong to a root group."""

    root: NiceFiniteGroup


Ambient = OwnParent | DelegatesToParent


################################################################################
# base class for nice finite groups


class NiceFiniteGroup:
    """Base class for a finite group equipped with a nice monomorphism.

    A root group (one that is its own parent) must implement identity, compose, inverse, eqv, and
    nice_image.  All other groups delegate these methods to their root.  Everything else (order,
    membership, enumeration, sampling, subgroups, representations) is provided by this class, using
    the stabilizer chain of the group.
    """

    _ambient: Ambient
    _generators: tuple[Element, ...]
    _name: str | None
    _known_order: int | None = None

    def __init__(
        self,
        generators: Sequence[Element],
        *,
        ambient: Ambient | None = None,
        name: str | None = None,
    ) -> None:
        self._generators = tuple(generators)
        self._ambient = ambient if ambient is not None else OwnParent()
        self._name = name

    @property
    def name(self) -> str:
        """A name for this group, which is not required to uniquely identify the group."""
        return self._name or f"{type(self).__name__}"

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<{self.name}>"

    ####################################################################################
    # parent and delegated methods

    @property
    def parent(self) -> NiceFiniteGroup:
        """The root group that embeds the members of this group."""
        if isinstance(self._ambient, DelegatesToParent):
            return self._ambient.root
        return self

    @property
    def is_root(self) -> bool:
        """Is this group its own parent?"""
        return isinstance(self._ambient, OwnParent)

    def _delegate(self, method: str) -> NiceFiniteGroup:
        """The root group to which a method is delegated."""
        if isinstance(self._ambient, DelegatesToParent):
            return self._ambient.root
        raise NotImplementedError(f"{self} is its own parent, so it must implement {method}")

    @property
    def ambient_key(self) -> typing.Hashable:
        """Key identifying the members that a root group embeds; used to compare groups."""
        if self.is_root:
            return (type(self).__name__, id(self))
        return self.parent.ambient_key

    @property
    def identity(self) -> Element:
        """The identity element of this group."""
        return self._delegate("identity").identity

    def compose(self, xx: Element, yy: Element) -> Element:
        """Product of two group members: xx first, then yy."""
        return self._delegate("compose").compose(xx, yy)

    def inverse(self, xx: Element) -> Element:
        """Inverse of a group member."""
        return self._delegate("inverse").inverse(xx)

    def eqv(self, xx: Element, yy: Element) -> bool:
        """Are two group members equal?"""
        return self._delegate("eqv").eqv(xx, yy)

    def nice_image(self, element: Element) -> Permutation:
        """Permutation representing a group member under the nice monomorphism."""
        return self._delegate("nice_image").nice_image(element)

    def nice_preimage(self, perm: comb.Permutation) -> Element:
        """The group member represented by a permutation, obtained by sifting it through the chain.

        Raises a NotInGroupError if the permutation does not represent a member of this group.
        """
        return self.chain.image(perm)

    ####################################################################################
    # generators and the stabilizer chain

    @property
    def generators(self) -> Sequence[Element]:
        """Generators of this group."""
        return list(self._generators)

    @property
    def num_generators(self) -> int:
        """Number of generators of this group."""
        return len(self._generators)

    def generator(self, index: int) -> Element:
        """The generator with a given index."""
        return self._generators[index]

    @property
    def degree(self) -> int:
        """Number of points that the nice images of the members of this group act on."""
        return self.nice_image(self.identity).size

    def compute_chain(
        self, *, base: Sequence[int] = (), randomized: bool = False, seed: int | None = None
    ) -> bsgs.StabilizerChain:
        """Construct a new stabilizer chain for this group, whose images are members of this group.

        Most users will want the (cached) stabilizer chain in NiceFiniteGroup.chain instead.
        """
        identity_image = self.nice_image(self.identity)
        if not identity_image.is_Identity:
            raise ValueError(f"The nice monomorphism of {self} does not preserve the identity")
        images = [self.nice_image(generator) for generator in self._generators]
        return bsgs.build_chain(
            identity_image.size,
            images,
            images=self._generators,
            target=self,
            base=base,
            order=self._known_order,
            randomized=randomized,
            seed=seed,
        )

    @cached_once
    def chain(self) -> bsgs.StabilizerChain:
        """The stabilizer chain of this group, computed once on first use."""
        return self.compute_chain()

    ####################################################################################
    # methods enabled by the stabilizer chain

    @property
    def order(self) -> int:
        """Number of members in this group."""
        return self.chain.order

    @property
    def is_trivial(self) -> bool:
        """Is this the trivial group?"""
        return self.order == 1

    @property
    def is_abelian(self) -> bool:
        """Is this group Abelian?"""
        return all(
            self.eqv(self.compose(aa, bb), self.compose(bb, aa))
            for aa, bb in itertools.combinations(self._generators, 2)
        )

    def contains(self, element: Element) -> bool:
        """Does this group contain the given member of its parent group?"""
        return self.chain.contains(self.nice_image(element))

    def __contains__(self, element: Element) -> bool:
        return self.contains(element)

    def random(self, *, seed: int | None = None) -> Element:
        """A uniformly random member of this group."""
        return self.chain.random_with_image(seed=seed)[1]

    def element_order(self, element: Element) -> int:
        """The order of a group member: the smallest o > 0 for which element**o is the identity."""
        return int(self.nice_image(element).order())

    @cached_once
    def elements(self) -> IndexedFamily:
        """All members of this group, as an indexed family."""
        return IndexedFamily(
            self.order,
            self.chain.image_from_index,
            lambda element: self.chain.index_from_element(self.nice_image(element)),
        )

    def index(self, element: Element) -> int:
        """The index of a member of this group in NiceFiniteGroup.elements."""
        return self.elements.find(element)

    def generate(self) -> Iterator[Element]:
        """Iterate over all members of this group."""
        if self.order > ENUMERATION_WARNING_ORDER:
            warnings.warn(f"Enumerating all {self.order} members of {self}", stacklevel=2)
        yield from self.elements

    def elements_list(self) -> list[Element]:
        """List of all members of this group."""
        return list(self.generate())

    @cached_once
    def decomposition(self) -> FiniteGroupDecomposition:
        """Decomposition of this group as an ordered product of transversals."""
        return FiniteGroupDecomposition(self, self.chain.images_decomposition())

    ####################################################################################
    # comparing groups

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, NiceFiniteGroup)
            and self.parent.ambient_key == other.parent.ambient_key
            and self.order == other.order
            and all(self.contains(generator) for generator in other.generators)
        )

    def __hash__(self) -> int:
        return hash((self.parent.ambient_key, self.order))

    def is_subgroup(self, other: NiceFiniteGroup) -> bool:
        """Is this group a subgroup of another group?"""
        return self.parent.ambient_key == other.parent.ambient_key and all(
            other.contains(generator) for generator in self._generators
        )

    ####################################################################################
    # subgroups

    def subgroup(
        self,
        generators: Sequence[Element],
        *,
        order: int | None = None,
        name: str | None = None,
    ) -> NiceFiniteSubgroup:
        """Construct a subgroup of the parent of this group from generators.

        The subgroup is always constructed as a subgroup of the root of this group, so all subgroups
        share one nice monomorphism.
        """
        return NiceFiniteSubgroup(self.parent, generators, order=order, name=name)

    def trivial_subgroup(self) -> NiceFiniteSubgroup:
        """The trivial subgroup of this group."""
        return self.subgroup([], order=1)

    def left_conjugate(self, by: Element, element: Element) -> Element:
        """Conjugate a group member: by * element * by^-1."""
        return self.compose(self.compose(by, element), self.inverse(by))

    def left_conjugate_group(self, by: Element) -> NiceFiniteSubgroup:
        """The left conjugate of this group by a member of its parent.

        The generators of the conjugate group are the left conjugates of the generators of this group.
        """
        generators = [self.left_conjugate(by, generator) for generator in self._generators]
        return self.parent.subgroup(generators, order=self.order)

    ####################################################################################
    # products of groups

    def __mul__(self, other: NiceFiniteGroup) -> DirectProductGroup:
        """Direct product of two groups."""
        return DirectProductGroup(self, other)

    def __pow__(self, power: int) -> DirectProductGroup:
        """Direct product of self multiple times."""
        assert power > 0
        return DirectProductGroup(*[self] * power)

    @staticmethod
    def product(*groups: NiceFiniteGroup, repeat: int = 1) -> DirectProductGroup:
        """Direct product of groups."""
        return DirectProductGroup(*groups * repeat)

    @staticmethod
    def from_table(
        table: npt.NDArray[np.int_] | Sequence[Sequence[int]], *, name: str | None = None
    ) -> NiceFiniteSubgroup:
        """Construct a group from a multiplication (Cayley) table.

        The rows of the table are permutations of the group members, which generate a permutation
        group isomorphic to the group described by the table.
        """
        members = [Permutation([int(val) for val in row]) for row in table]
        return permutation_group(*members, degree=len(members), name=name)

    ####################################################################################
    # representations

    def rep_by_images(
        self,
        images: Sequence[representations.Matrix],
        inverse_images: Sequence[representations.Matrix] | None = None,
    ) -> representations.RepByImages:
        """Representation of this group defined by the images of its generators."""
        return representations.RepByImages(self, images, inverse_images)

    def permutation_rep(
        self, dimension: int, permutations: Sequence[comb.Permutation]
    ) -> representations.RepByImages:
        """Representation of this group by permutation matrices.

        The generators of this group map to the given permutations of 'dimension' points.
        """
        return representations.permutation_rep(self, dimension, permutations)

    def signed_permutation_rep(
        self, dimension: int, signed_permutations: Sequence[SignedPermutation]
    ) -> representations.RepByImages:
        """Representation of this group by signed permutation matrices.

        The generators of this group map to the given signed permutations of 'dimension' points.
        """
        if any(len(perm) != dimension for perm in signed_permutations):
            raise ValueError(f"Signed permutations must act on {dimension} points")
        images = [SignedPermutationGroup.to_sparse_matrix(perm) for perm in signed_permutations]
        return representations.RepByImages(
            self, images, [image.T.tocsr() for image in images], dimension=dimension
        )

    def regular_rep(self) -> representations.RepByImages:
        """The (right) regular representation of this group, in which members permute each other.

        The basis vectors of the representation are the members of this group, ordered by index.
        """
        permutations = [
            Permutation([self.index(self.compose(member, generator)) for member in self.generate()])
            for generator in self._generators
        ]
        return self.permutation_rep(self.order, permutations)


################################################################################
# subgroups


class NiceFiniteSubgroup(NiceFiniteGroup):
    """Subgroup of a root group, generated by members of the root group."""

    def __init__(
        self,
        parent: NiceFiniteGroup,
        generators: Sequence[Element],
        *,
        order: int | None = None,
        name: str | None = None,
    ) -> None:
        root = parent.parent
        if order is not None and order < 1:
            raise ValueError(f"Group orders must be positive (provided: {order})")
        super().__init__(generators, ambient=DelegatesToParent(root), name=name)
        self._known_order = order

        # fail early on generators that are not members of the root group
        for generator in self._generators:
            root.nice_image(generator)

    @property
    def name(self) -> str:
        """A name for this group, which is not required to uniquely identify the group."""
        return self._name or f"Subgroup of {self.parent}"


################################################################################
# permutation groups


class SymmetricGroup(NiceFiniteGroup):
    """Symmetric group: all permutations of a given number of symbols.

    The symmetric group is the root group for permutations, and its nice monomorphism is the
    identity map.
    """

    _degree: int

    def __init__(self, degree: int) -> None:
        if degree < 0:
            raise ValueError(f"Symmetric groups must have nonnegative degree (provided: {degree})")
        self._degree = degree
        generators = []
        if degree >= 2:
            generators.append(from_cycles(degree, (0, 1)))
        if degree >= 3:
            generators.append(from_cycles(degree, tuple(range(degree))))
        super().__init__(generators, name=f"SymmetricGroup({degree})")
        self._known_order = math.factorial(degree)

    @property
    def ambient_key(self) -> typing.Hashable:
        """Key identifying the members that this group embeds."""
        return (SymmetricGroup.__name__, self._degree)

    @property
    def degree(self) -> int:
        """Number of symbols permuted by this group."""
        return self._degree

    @property
    def identity(self) -> Permutation:
        """The identity permutation."""
        return identity_permutation(self._degree)

    def compose(self, xx: comb.Permutation, yy: comb.Permutation) -> Permutation:
        """Product of two permutations: xx first, then yy."""
        return self.nice_image(xx) * self.nice_image(yy)

    def inverse(self, xx: comb.Permutation) -> Permutation:
        """Inverse of a permutation."""
        return ~self.nice_image(xx)

    def eqv(self, xx: comb.Permutation, yy: comb.Permutation) -> bool:
        """Are two permutations equal?"""
        return bool(self.nice_image(xx).array_form == self.nice_image(yy).array_form)

    def nice_image(self, element: comb.Permutation) -> Permutation:
        """The nice monomorphism of a symmetric group is the identity map."""
        check_degree(element, self._degree)
        return Permutation.from_sympy(element)

    def nice_preimage(self, perm: comb.Permutation) -> Permutation:
        """The nice monomorphism of a symmetric group is the identity map."""
        return self.nice_image(perm)


def permutation_group(
    *generators: comb.Permutation | Sequence[int],
    degree: int | None = None,
    order: int | None = None,
    name: str | None = None,
) -> NiceFiniteSubgroup:
    """Group generated by permutations, as a subgroup of a symmetric group.

    Generators may be permutations or sequences of integers (in array form).  If not provided, the
    degree of the group is the degree of its first generator.
    """
    perms = [
        Permutation.from_sympy(gen) if isinstance(gen, comb.Permutation) else Permutation(list(gen))
        for gen in generators
    ]
    if degree is None:
        if not perms:
            raise ValueError("The degree of a permutation group without generators is required")
        degree = perms[0].size
    return SymmetricGroup(degree).subgroup(perms, order=order, name=name)


class TrivialGroup(NiceFiniteSubgroup):
    """The trivial group, containing only the identity permutation of a given degree."""

    def __init__(self, degree: int = 1) -> None:
        super().__init__(SymmetricGroup(degree), [], order=1, name=TrivialGroup.__name__)


class CyclicGroup(NiceFiniteSubgroup):
    """Cyclic group of a specified order.

    The cyclic group has one generator, g, which cyclically shifts 'order' points.  All members of
    the cyclic group of order R can be written as g^p for an integer power p in {0, 1, ..., R-1}.
    """

    def __init__(self, order: int) -> None:
        if order < 1:
            raise ValueError(f"Cyclic groups must have positive order (provided: {order})")
        generators = [from_cycles(order, tuple(range(order)))] if order > 1 else []
        super().__init__(
            SymmetricGroup(order), generators, order=order, name=f"CyclicGroup({order})"
        )


class AbelianGroup(NiceFiniteSubgroup):
    """Direct product of cyclic groups of the specified orders.

    The i-th generator cyclically shifts the i-th block of orders[i] points.
    """

    def __init__(self, *orders: int) -> None:
        if any(order < 1 for order in orders):
            raise ValueError(f"Cyclic factors must have positive orders (provided: {orders})")
        degree = sum(orders)
        generators = []
        for start, order in zip(itertools.accumulate((0,) + orders), orders):
            if order > 1:
                generators.append(from_cycles(degree, tuple(range(start, start + order))))
        order_text = ",".join(map(str, orders))
        super().__init__(
            SymmetricGroup(degree),
            generators,
            order=math.prod(orders),
            name=f"AbelianGroup({order_text})",
        )


class DihedralGroup(NiceFiniteSubgroup):
    """Dihedral group: symmetries of a regular polygon with a given number of sides.

    As in SymPy, the dihedral groups with 1 and 2 sides act on 2 and 4 points, respectively.
    """

    def __init__(self, sides: int) -> None:
        if sides < 1:
            raise ValueError(f"Dihedral groups require a positive number of sides ({sides})")
        if sides == 1:
            degree = 2
            generators = [from_cycles(degree, (0, 1))]
        elif sides == 2:
            degree = 4
            generators = [from_cycles(degree, (0, 1), (2, 3)), from_cycles(degree, (0, 2), (1, 3))]
        else:
            degree = sides
            rotation = from_cycles(degree, tuple(range(sides)))
            reflection = from_cycles(
                degree, *[(ii, sides - 1 - ii) for ii in range(sides // 2)]
            )
            generators = [rotation, reflection]
        super().__init__(
            SymmetricGroup(degree), generators, order=2 * sides, name=f"DihedralGroup({sides})"
        )


class AlternatingGroup(NiceFiniteSubgroup):
    """Alternating group: even permutations of a set with a given number of elements."""

    def __init__(self, degree: int) -> None:
        generators = []
        if degree >= 3:
            generators.append(from_cycles(degree, (0, 1, 2)))
        if degree >= 4:
            # an odd-length cycle is an even permutation
            if degree % 2:
                generators.append(from_cycles(degree, tuple(range(degree))))
            else:
                generators.append(from_cycles(degree, tuple(range(1, degree))))
        order = max(math.factorial(degree) // 2, 1)
        super().__init__(
            SymmetricGroup(degree), generators, order=order, name=f"AlternatingGroup({degree})"
        )


class QuaternionGroup(NiceFiniteSubgroup):
    """Quaternion group: 1, i, j, k, -1, -i, -j, -k."""

    TABLE = (
        (0, 1, 2, 3, 4, 5, 6, 7),
        (1, 4, 3, 6, 5, 0, 7, 2),
        (2, 7, 4, 1, 6, 3, 0, 5),
        (3, 2, 5, 4, 7, 6, 1, 0),
        (4, 5, 6, 7, 0, 1, 2, 3),
        (5, 0, 7, 2, 1, 4, 3, 6),
        (6, 3, 0, 5, 2, 7, 4, 1),
        (7, 6, 1, 0, 3, 2, 5, 4),
    )

    def __init__(self) -> None:
        generators = [Permutation(list(row)) for row in QuaternionGroup.TABLE]
        super().__init__(SymmetricGroup(8), generators, order=8, name=QuaternionGroup.__name__)


################################################################################
# signed permutations


class SignedPermutationGroup(NiceFiniteGroup):
    """Group of all signed permutations of a given number of symbols (the hyperoctahedral group).

    A signed permutation x of n symbols is a tuple of nonzero integers, with x[k] = +/-(j+1) if x
    maps the basis vector e_k to +/-e_j.  The nice image of x permutes 2n points: points k and n+k
    stand for +e_k and -e_k.
    """

    _degree: int

    def __init__(self, degree: int) -> None:
        if degree < 0:
            raise ValueError(f"Signed permutations must have nonnegative degree ({degree})")
        self._degree = degree
        identity = tuple(range(1, degree + 1))
        generators = []
        if degree >= 2:
            generators.append((2, 1) + identity[2:])
        if degree >= 3:
            generators.append(identity[1:] + (1,))
        if degree >= 1:
            generators.append((-1,) + identity[1:])
        super().__init__(generators, name=f"SignedPermutationGroup({degree})")

    @property
    def ambient_key(self) -> typing.Hashable:
        """Key identifying the members that this group embeds."""
        return (SignedPermutationGroup.__name__, self._degree)

    @property
    def identity(self) -> SignedPermutation:
        """The identity signed permutation."""
        return tuple(range(1, self._degree + 1))

    def compose(self, xx: SignedPermutation, yy: SignedPermutation) -> SignedPermutation:
        """Product of two signed permutations: xx first, then yy."""
        return tuple(int(np.sign(val)) * yy[abs(val) - 1] for val in xx)

    def inverse(self, xx: SignedPermutation) -> SignedPermutation:
        """Inverse of a signed permutation."""
        inverse = [0] * len(xx)
        for kk, val in enumerate(xx):
            inverse[abs(val) - 1] = int(np.sign(val)) * (kk + 1)
        return tuple(inverse)

    def eqv(self, xx: SignedPermutation, yy: SignedPermutation) -> bool:
        """Are two signed permutations equal?"""
        return tuple(xx) == tuple(yy)

    def nice_image(self, element: SignedPermutation) -> Permutation:
        """Permutation of 2n points representing a signed permutation of n points."""
        self.check_signed_permutation(element)
        nn = self._degree
        array = [0] * (2 * nn)
        for kk, val in enumerate(element):
            jj = abs(val) - 1
            array[kk], array[nn + kk] = (jj, nn + jj) if val > 0 else (nn + jj, jj)
        return Permutation(array)

    def check_signed_permutation(self, element: SignedPermutation) -> None:
        """Raise an error if the given element is not a signed permutation of this group's degree."""
        if len(element) != self._degree:
            raise DegreeMismatchError(
                f"Expected a signed permutation of degree {self._degree}"
                f" (provided: {len(element)})"
            )
        if sorted(abs(val) for val in element) != list(range(1, self._degree + 1)):
            raise ValueError(f"Invalid signed permutation: {element}")

    @staticmethod
    def to_matrix(element: SignedPermutation) -> npt.NDArray[np.int_]:
        """Lift a signed permutation to a right-acting signed permutation matrix.

        As for Permutation.to_matrix, this lift is a homomorphism: the matrix of compose(x, y) is the
        product of the matrices of x and y.
        """
        return SignedPermutationGroup.to_sparse_matrix(element).toarray()

    @staticmethod
    def to_sparse_matrix(element: SignedPermutation) -> scipy.sparse.csr_array:
        """Lift a signed permutation to a sparse right-acting signed permutation matrix."""
        size = len(element)
        rows = np.arange(size, dtype=int)
        cols = np.array([abs(val) - 1 for val in element], dtype=int)
        signs = np.sign(np.array(element, dtype=int))
        return scipy.sparse.csr_array((signs, (rows, cols)), shape=(size, size))


################################################################################
# matrix groups over finite fields


class MatrixGroup(NiceFiniteGroup):
    """Group of invertible square matrices over a finite field, generated by the given matrices.

    Group members are galois.FieldArray matrices.  The nice image of a matrix M is the permutation
    of the nonzero vectors v of the underlying vector space by right-multiplication, v --> v @ M.
    Nonzero vectors are indexed by their lexicographic position among all vectors, minus one.
    """

    _field: type[galois.FieldArray]
    _dimension: int

    def __init__(
        self,
        *matrices: galois.FieldArray,
        field: type[galois.FieldArray] | None = None,
        dimension: int | None = None,
        name: str | None = None,
    ) -> None:
        if not matrices and (field is None or dimension is None):
            raise ValueError("A matrix group without generators requires a field and a dimension")
        self._field = field or type(matrices[0])
        self._dimension = dimension or matrices[0].shape[0]
        if not issubclass(self._field, galois.FieldArray):
            raise ValueError(f"Matrix groups require matrices over a finite field, not {self._field}")
        super().__init__([self.to_field(matrix) for matrix in matrices], name=name)
        for matrix in self._generators:
            self.nice_image(matrix)

    @property
    def ambient_key(self) -> typing.Hashable:
        """Key identifying the members that this group embeds."""
        return (
            MatrixGroup.__name__,
            self.field.characteristic,
            str(self.field.irreducible_poly),
            self.dimension,
        )

    @property
    def field(self) -> type[galois.FieldArray]:
        """Base field of this group."""
        return self._field

    @property
    def dimension(self) -> int:
        """Dimension of the matrices in this group."""
        return self._dimension

    @property
    def identity(self) -> galois.FieldArray:
        """The identity matrix."""
        return self.field.Identity(self.dimension)

    def compose(self, xx: galois.FieldArray, yy: galois.FieldArray) -> galois.FieldArray:
        """Product of two matrices: xx first, then yy (acting on row vectors)."""
        return xx @ yy

    def inverse(self, xx: galois.FieldArray) -> galois.FieldArray:
        """Inverse of a matrix."""
        return np.linalg.inv(xx)

    def eqv(self, xx: galois.FieldArray, yy: galois.FieldArray) -> bool:
        """Are two matrices equal?"""
        return bool(np.array_equal(xx, yy))

    def to_field(self, matrix: npt.ArrayLike) -> galois.FieldArray:
        """Convert a matrix into a matrix over the base field of this group."""
        if isinstance(matrix, galois.FieldArray):
            if type(matrix) is not self.field:
                raise ValueError(f"Matrix over {type(matrix).name} is not over {self.field.name}")
            return matrix
        return self.field(matrix)

    @functools.cached_property
    def _vectors(self) -> galois.FieldArray:
        """All nonzero vectors of the underlying vector space, in lexicographic order."""
        vectors = itertools.product(range(self.field.order), repeat=self.dimension)
        return self.field(list(vectors)[1:])

    @functools.cached_property
    def _place_values(self) -> npt.NDArray[np.int_]:
        return self.field.order ** np.arange(self.dimension - 1, -1, -1)

    def nice_image(self, element: galois.FieldArray) -> Permutation:
        """Permutation of the nonzero vectors v --> v @ element."""
        if np.shape(element) != (self.dimension, self.dimension):
            raise DegreeMismatchError(
                f"Expected a {self.dimension}x{self.dimension} matrix (provided shape:"
                f" {np.shape(element)})"
            )
        images = self._vectors @ self.to_field(element)
        array = images.view(np.ndarray).astype(int) @ self._place_values - 1
        if sorted(array) != list(range(len(array))):
            raise ValueError(f"Matrix is not invertible over GF({self.field.order}):\n{element}")
        return Permutation([int(val) for val in array])


class SpecialLinearGroup(MatrixGroup):
    """Special linear group (SL): square matrices with determinant 1."""

    def __init__(self, dimension: int, field: int | None = None) -> None:
        super().__init__(
            *self.get_generating_mats(dimension, field),
            name=f"SL({dimension},{field or DEFAULT_FIELD_ORDER})",
        )
        order = self.field.order
        self._known_order = math.prod(order**dimension - order**jj for jj in range(dimension))
        self._known_order //= order - 1

    @staticmethod
    def get_generating_mats(
        dimension: int, field: int | None = None
    ) -> tuple[galois.FieldArray, galois.FieldArray]:
        """Generating matrices for the Special Linear group, based on arXiv:2201.09155."""
        base_field = galois.GF(field or DEFAULT_FIELD_ORDER)
        minus_one = -base_field(1)
        gen_w = minus_one * np.diag(np.ones(dimension - 1, dtype=int), k=-1).view(base_field)
        gen_w[0, -1] = 1
        gen_x = base_field.Identity(dimension)
        if base_field.order <= 3:
            gen_x[0, 1] = 1
        else:
            gen_x[0, 0] = base_field.primitive_element
            gen_x[1, 1] = base_field.primitive_element**-1
            gen_w[0, 0] = minus_one
        return gen_x, gen_w

    @staticmethod
    def iter_mats(dimension: int, field: int | None = None) -> Iterator[galois.FieldArray]:
        """Brute-force iteration over all square matrices with determinant 1."""
        base_field = galois.GF(field or DEFAULT_FIELD_ORDER)
        shape = (dimension, dimension)
        for entries in itertools.product(range(base_field.order), repeat=dimension**2):
            matrix = base_field(np.array(entries, dtype=int).reshape(shape))
            if np.linalg.det(matrix) == 1:
                yield matrix


SL = SpecialLinearGroup


################################################################################
# direct products


class DirectProductGroup(NiceFiniteGroup):
    """Direct product of nice finite groups.

    Members of the direct product are tuples with one member of each factor.  The nice image of a
    member is the "tensor product" of the nice images of its components; see Permutation.__matmul__.
    """

    _factors: tuple[NiceFiniteGroup, ...]

    def __init__(self, *factors: NiceFiniteGroup) -> None:
        self._factors = factors
        generators = []
        for index, factor in enumerate(factors):
            for generator in factor.generators:
                member = [other.identity for other in factors]
                member[index] = generator
                generators.append(tuple(member))
        name = " x ".join(factor.name for factor in factors)
        super().__init__(generators, name=f"DirectProduct({name})")

    @property
    def factors(self) -> tuple[NiceFiniteGroup, ...]:
        """The factors of this direct product."""
        return self._factors

    @property
    def ambient_key(self) -> typing.Hashable:
        """Key identifying the members that this group embeds."""
        return (DirectProductGroup.__name__, self._factors)

    @property
    def identity(self) -> tuple[Element, ...]:
        """The identity element of this group."""
        return tuple(factor.identity for factor in self._factors)

    def compose(self, xx: Sequence[Element], yy: Sequence[Element]) -> tuple[Element, ...]:
        """Product of two members of this group: xx first, then yy."""
        return tuple(factor.compose(aa, bb) for factor, aa, bb in zip(self._factors, xx, yy))

    def inverse(self, xx: Sequence[Element]) -> tuple[Element, ...]:
        """Inverse of a member of this group."""
        return tuple(factor.inverse(aa) for factor, aa in zip(self._factors, xx))

    def eqv(self, xx: Sequence[Element], yy: Sequence[Element]) -> bool:
        """Are two members of this group equal?"""
        return all(factor.eqv(aa, bb) for factor, aa, bb in zip(self._factors, xx, yy))

    def nice_image(self, element: Sequence[Element]) -> Permutation:
        """Tensor product of the nice images of the components of a member of this group."""
        if len(element) != len(self._factors):
            raise DegreeMismatchError(
                f"Expected a tuple with {len(self._factors)} components (provided: {element})"
            )
        images = [factor.nice_image(aa) for factor, aa in zip(self._factors, element)]
        return functools.reduce(operator.matmul, images, identity_permutation(0))
