"""Stabilizer chains: bases and strong generating sets of permutation groups

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

A stabilizer chain for a permutation group G with base (b_0, b_1, ..., b_{k-1}) describes the
sequence of subgroups G = G_0 > G_1 > ... > G_k = {1}, where G_i is the pointwise stabilizer of
b_0, ..., b_{i-1} in G.  Level i of the chain stores the orbit of b_i under G_i, together with a
transversal: one member u_x of G_i for every orbit point x, which maps b_i to x.

Every member g of G factors uniquely as g = u_{k-1} * ... * u_1 * u_0, with u_i taken from the
transversal at level i (recall that p * q applies p first).  Sifting g through the chain recovers
this factorization, which underlies membership tests, the computation of preimages, and a bijection
between the members of G and the integers 0, 1, ..., |G| - 1.

Each transversal member and strong generator of a chain additionally carries an "image" in a target
group, such that the map from chain members to images is a group homomorphism.  For the chain of an
abstract group, the images are the abstract group members whose nice monomorphism images are the
permutations of the chain.
"""

from __future__ import annotations

import dataclasses
import functools
import itertools
import math
import operator
import typing
from collections.abc import Iterator, Mapping, Sequence

import sympy.combinatorics as comb
import sympy.core.random

from nicegroups.permutations import Permutation, check_degree, identity

ArrayForm = tuple[int, ...]


class NotInGroupError(ValueError):
    """A permutation is not a member of the group described by a stabilizer chain."""


class ChainIntegrityError(RuntimeError):
    """A stabilizer chain violates the invariants of a base and strong generating set."""


class ImageGroup(typing.Protocol):
    """Group containing the images of the members of a stabilizer chain.

    The product compose(x, y) must follow the convention of permutations: x first, then y.
    """

    @property
    def identity(self) -> typing.Any:
        ...  # pragma: no cover

    def compose(self, xx: typing.Any, yy: typing.Any) -> typing.Any:
        ...  # pragma: no cover

    def inverse(self, xx: typing.Any) -> typing.Any:
        ...  # pragma: no cover


class PermutationImages:
    """Image group for chains whose permutations serve as their own images."""

    def __init__(self, degree: int) -> None:
        self._identity = identity(degree)

    @property
    def identity(self) -> Permutation:
        """The identity permutation."""
        return self._identity

    def compose(self, xx: Permutation, yy: Permutation) -> Permutation:
        """Product of two permutations."""
        return xx * yy

    def inverse(self, xx: Permutation) -> Permutation:
        """Inverse of a permutation."""
        return ~xx


################################################################################
# helper functions for permutations in array form


def compose_arrays(pp: Sequence[int], qq: Sequence[int]) -> ArrayForm:
    """Product of two permutations in array form: pp first, then qq."""
    return tuple(qq[ii] for ii in pp)


def invert_array(pp: Sequence[int]) -> ArrayForm:
    """Inverse of a permutation in array form."""
    inverse = [0] * len(pp)
    for ii, jj in enumerate(pp):
        inverse[jj] = ii
    return tuple(inverse)


def is_identity_array(pp: Sequence[int]) -> bool:
    """Is this permutation in array form the identity?"""
    return all(ii == jj for ii, jj in enumerate(pp))


################################################################################
# stabilizer chains


@dataclasses.dataclass(frozen=True, eq=False)
class ChainLevel:
    """One level of a stabilizer chain.

    The orbit is listed in the order in which its points were discovered, starting with the base
    point, whose transversal member is the identity.
    """

    base_point: int
    orbit: tuple[int, ...]
    transversal: Mapping[int, Permutation]
    transversal_images: Mapping[int, typing.Any]
    strong_generators: tuple[Permutation, ...]
    strong_generator_images: tuple[typing.Any, ...]

    def __len__(self) -> int:
        return len(self.orbit)

    def __contains__(self, point: object) -> bool:
        return point in self.transversal

    @functools.cached_property
    def positions(self) -> Mapping[int, int]:
        """Position of each orbit point in the orbit."""
        return {point: position for position, point in enumerate(self.orbit)}

    @functools.cached_property
    def arrays(self) -> Mapping[int, ArrayForm]:
        """Transversal members in array form."""
        return {point: tuple(perm.array_form) for point, perm in self.transversal.items()}

    @functools.cached_property
    def inverse_arrays(self) -> Mapping[int, ArrayForm]:
        """Inverses of the transversal members, in array form."""
        return {point: invert_array(array) for point, array in self.arrays.items()}


@dataclasses.dataclass(frozen=True)
class SiftResult:
    """Outcome of sifting a permutation through a stabilizer chain.

    The permutation is a member of the group iff it passed every level (is_member), in which case the
    points it visited index its factorization u_{k-1} * ... * u_0.  Otherwise, the sift stopped at
    level 'depth', with 'residue' equal to what was left of the permutation.
    """

    residue: Permutation
    depth: int
    points: tuple[int, ...]
    is_member: bool


class StabilizerChain:
    """Immutable stabilizer chain of a permutation group.

    Stabilizer chains are normally constructed with nicegroups.bsgs.build_chain, which runs the
    Schreier-Sims algorithm.
    """

    _degree: int
    _levels: tuple[ChainLevel, ...]
    _target: ImageGroup

    def __init__(
        self, degree: int, levels: Sequence[ChainLevel], target: ImageGroup | None = None
    ) -> None:
        self._degree = degree
        self._levels = tuple(levels)
        self._target = target if target is not None else PermutationImages(degree)

    def __str__(self) -> str:
        return f"{type(self).__name__}(degree={self.degree}, base={self.base}, order={self.order})"

    @property
    def degree(self) -> int:
        """Number of points that the permutations of this chain act on."""
        return self._degree

    @property
    def levels(self) -> tuple[ChainLevel, ...]:
        """Levels of this chain, from the whole group down to the last nontrivial stabilizer."""
        return self._levels

    @property
    def length(self) -> int:
        """Number of levels (base points) in this chain."""
        return len(self._levels)

    @property
    def target(self) -> ImageGroup:
        """Group containing the images of the members of this chain."""
        return self._target

    @property
    def base(self) -> tuple[int, ...]:
        """Base points of this chain."""
        return tuple(level.base_point for level in self._levels)

    @property
    def strong_generators(self) -> tuple[Permutation, ...]:
        """Strong generating set of this chain."""
        generators: dict[Permutation, None] = {}
        for level in self._levels:
            generators.update(dict.fromkeys(level.strong_generators))
        return tuple(generators)

    @functools.cached_property
    def order(self) -> int:
        """Number of members in the group described by this chain."""
        return math.prod(len(level) for level in self._levels)

    @property
    def is_trivial(self) -> bool:
        """Does this chain describe the trivial group?"""
        return self.order == 1

    def stabilizer(self, depth: int) -> StabilizerChain:
        """Chain of the pointwise stabilizer of the first 'depth' base points."""
        if not 0 <= depth <= self.length:
            raise IndexError(f"Depth must be between 0 and {self.length} (provided: {depth})")
        return StabilizerChain(self._degree, self._levels[depth:], self._target)

    ####################################################################################
    # sifting and membership

    def _to_array(self, perm: comb.Permutation) -> ArrayForm:
        check_degree(perm, self._degree)
        return tuple(perm.array_form)

    def _sift_array(self, array: ArrayForm) -> tuple[ArrayForm, list[int]]:
        points = []
        for level in self._levels:
            point = array[level.base_point]
            if point not in level.transversal:
                break
            points.append(point)
            array = compose_arrays(array, level.inverse_arrays[point])
        return array, points

    def sift(self, perm: comb.Permutation) -> SiftResult:
        """Strip a permutation through this chain, level by level."""
        array, points = self._sift_array(self._to_array(perm))
        is_member = len(points) == self.length and is_identity_array(array)
        return SiftResult(Permutation(list(array)), len(points), tuple(points), is_member)

    def contains(self, perm: comb.Permutation) -> bool:
        """Is the given permutation a member of this group?"""
        return self.sift(perm).is_member

    def __contains__(self, perm: comb.Permutation) -> bool:
        return self.contains(perm)

    def _member_points(self, perm: comb.Permutation) -> tuple[int, ...]:
        result = self.sift(perm)
        if not result.is_member:
            raise NotInGroupError(f"Permutation {perm} is not a member of this group")
        return result.points

    def factors(self, perm: comb.Permutation) -> list[Permutation]:
        """Transversal members [u_0, u_1, ..., u_{k-1}] for which perm = u_{k-1} * ... * u_0."""
        points = self._member_points(perm)
        return [level.transversal[point] for level, point in zip(self._levels, points)]

    def image(self, perm: comb.Permutation) -> typing.Any:
        """Image of a member of this group in the target group."""
        return self._image_from_points(self._member_points(perm))

    def _element_from_points(self, points: Sequence[int]) -> Permutation:
        array: ArrayForm = tuple(range(self._degree))
        for level, point in zip(self._levels, points):
            array = compose_arrays(level.arrays[point], array)
        return Permutation(list(array))

    def _image_from_points(self, points: Sequence[int]) -> typing.Any:
        image = self._target.identity
        for level, point in zip(self._levels, points):
            image = self._target.compose(level.transversal_images[point], image)
        return image

    ####################################################################################
    # random members

    def _random_points(self, seed: int | None = None) -> list[int]:
        if seed is not None:
            sympy.core.random.seed(seed)
        return [level.orbit[sympy.core.random.randrange(len(level))] for level in self._levels]

    def random(self, *, seed: int | None = None) -> Permutation:
        """A uniformly random member of this group."""
        return self._element_from_points(self._random_points(seed))

    def random_with_image(self, *, seed: int | None = None) -> tuple[Permutation, typing.Any]:
        """A uniformly random member of this group, together with its image."""
        points = self._random_points(seed)
        return self._element_from_points(points), self._image_from_points(points)

    ####################################################################################
    # bijection between members and indices

    def _points_from_index(self, index: int) -> list[int]:
        index = operator.index(index)
        if not 0 <= index < self.order:
            raise IndexError(
                f"Index must be between 0 and {self.order - 1} (provided: {index})"
            )
        points = []
        for level in self._levels:
            index, digit = divmod(index, len(level))
            points.append(level.orbit[digit])
        return points

    def element_from_index(self, index: int) -> Permutation:
        """The member of this group with a given index.

        Indices are mixed-radix numbers whose digits are positions in the orbits of the chain, with
        the first level being the least significant digit.  Index 0 is the identity.
        """
        return self._element_from_points(self._points_from_index(index))

    def image_from_index(self, index: int) -> typing.Any:
        """The image of the member of this group with a given index."""
        return self._image_from_points(self._points_from_index(index))

    def index_from_element(self, perm: comb.Permutation) -> int:
        """The index of a member of this group.  Inverse of element_from_index."""
        index = 0
        radix = 1
        for level, point in zip(self._levels, self._member_points(perm)):
            index += radix * level.positions[point]
            radix *= len(level)
        return index

    ####################################################################################
    # decompositions and enumeration

    def decomposition(self) -> list[tuple[Permutation, ...]]:
        """Transversals of this chain, ordered such that products of choices give each member once.

        Every member of the group is equal to t_0 * t_1 * ... * t_{k-1} for exactly one choice of
        t_i in the i-th returned set.  The sets run from the last level of the chain to the first.
        Choices enumerated in lexicographic order (as by itertools.product) yield members in the
        order of their indices.
        """
        return [
            tuple(level.transversal[point] for point in level.orbit)
            for level in reversed(self._levels)
        ]

    def images_decomposition(self) -> list[tuple[typing.Any, ...]]:
        """Images of the transversals of this chain, ordered as in StabilizerChain.decomposition."""
        return [
            tuple(level.transversal_images[point] for point in level.orbit)
            for level in reversed(self._levels)
        ]

    def elements(self) -> Iterator[Permutation]:
        """Iterate over all members of this group, in the order of their indices."""
        arrays = [[level.arrays[point] for point in level.orbit] for level in self._levels[::-1]]
        start: ArrayForm = tuple(range(self._degree))
        for choice in itertools.product(*arrays):
            yield Permutation(list(functools.reduce(compose_arrays, choice, start)))

    ####################################################################################
    # verification

    def verify(self) -> None:
        """Check the invariants of this chain, raising a ChainIntegrityError if any fail.

        In addition to checking the consistency of every orbit and transversal, this method checks
        that every Schreier generator of every level sifts to the identity through the levels below,
        which certifies that the chain describes the group generated by its strong generators.
        """
        base = self.base
        if len(set(base)) != len(base):
            raise ChainIntegrityError(f"Repeated base points: {base}")

        identity_array = tuple(range(self._degree))
        for depth, level in enumerate(self._levels):
            if level.orbit[0] != level.base_point:
                raise ChainIntegrityError(f"Orbit at level {depth} does not start at its base point")
            if set(level.orbit) != set(level.transversal) or len(set(level.orbit)) != len(level):
                raise ChainIntegrityError(f"Orbit and transversal disagree at level {depth}")
            if level.arrays[level.base_point] != identity_array:
                raise ChainIntegrityError(f"Base point representative at level {depth} is not 1")
            for point, array in level.arrays.items():
                if any(array[bb] != bb for bb in base[:depth]) or array[level.base_point] != point:
                    raise ChainIntegrityError(
                        f"Transversal member for point {point} at level {depth} is invalid"
                    )

            below = self.stabilizer(depth + 1)
            for generator in level.strong_generators:
                gen_array = self._to_array(generator)
                if any(gen_array[bb] != bb for bb in base[:depth]):
                    raise ChainIntegrityError(
                        f"Strong generator {generator} at level {depth} moves a prior base point"
                    )
                if any(gen_array[point] not in level.transversal for point in level.orbit):
                    raise ChainIntegrityError(f"Orbit at level {depth} is not closed")
                for point in level.orbit:
                    next_point = gen_array[point]
                    schreier_generator = compose_arrays(
                        compose_arrays(level.arrays[point], gen_array),
                        level.inverse_arrays[next_point],
                    )
                    residue, points = below._sift_array(schreier_generator)
                    if len(points) != below.length or not is_identity_array(residue):
                        raise ChainIntegrityError(
                            f"Schreier generator at level {depth} does not sift to the identity"
                        )
