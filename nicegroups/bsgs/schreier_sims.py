"""Construction of stabilizer chains with the Schreier-Sims algorithm

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

This module implements the deterministic Schreier-Sims algorithm, as described in Section 4.4.2 of
the Handbook of Computational Group Theory by Holt, Eick, and O'Brien.  Every Schreier generator at
every level of the chain is sifted through the levels below, and any nontrivial residue is added to
the strong generating set, so the constructed chain is always complete: its order is exact.
"""

from __future__ import annotations

import collections
import typing
from collections.abc import Sequence

import sympy.combinatorics as comb
import sympy.core.random

from nicegroups.bsgs.chain import (
    ArrayForm,
    ChainLevel,
    ImageGroup,
    PermutationImages,
    StabilizerChain,
    compose_arrays,
    invert_array,
    is_identity_array,
)
from nicegroups.permutations import Permutation, check_degree


class _PartialLevel:
    """Mutable level of a stabilizer chain under construction.

    Transversal members are never replaced once found, so Schreier generators that have already
    been sifted remain valid as the levels below grow.
    """

    def __init__(self, base_point: int, degree: int, identity_image: typing.Any) -> None:
        self.base_point = base_point
        self.orbit = [base_point]
        self.transversal: dict[int, ArrayForm] = {base_point: tuple(range(degree))}
        self.transversal_images: dict[int, typing.Any] = {base_point: identity_image}
        self.inverses: dict[int, ArrayForm] = {}
        self.generators: list[ArrayForm] = []
        self.generator_images: list[typing.Any] = []
        self.sifted: set[tuple[int, int]] = set()  # (orbit point, generator index) pairs

    def inverse(self, point: int) -> ArrayForm:
        """Inverse of the transversal member for an orbit point."""
        if point not in self.inverses:
            self.inverses[point] = invert_array(self.transversal[point])
        return self.inverses[point]


class _ChainBuilder:
    """Schreier-Sims algorithm acting on permutations in array form, with images on the side."""

    def __init__(
        self,
        degree: int,
        target: ImageGroup,
        base: Sequence[int],
        randomized: bool,
    ) -> None:
        self.degree = degree
        self.target = target
        self.randomized = randomized
        self.levels: list[_PartialLevel] = []
        for point in base:
            self._append_level(point)

    def _append_level(self, point: int) -> None:
        self.levels.append(_PartialLevel(point, self.degree, self.target.identity))

    def _choose_base_point(self, array: ArrayForm) -> int:
        """Choose a new base point moved by a permutation that fixes all current base points."""
        moved = [point for point, image in enumerate(array) if point != image]
        if self.randomized:
            return sympy.core.random.choice(moved)
        return moved[0]

    ####################################################################################
    # orbits and transversals

    def _add_generator(self, depth: int, array: ArrayForm, image: typing.Any) -> None:
        """Add a strong generator to a level, and extend its orbit accordingly."""
        level = self.levels[depth]
        level.generators.append(array)
        level.generator_images.append(image)

        # previously reached points only need the new generator, but new points need all of them
        queue: collections.deque[int] = collections.deque()
        for point in list(level.orbit):
            self._visit(level, point, array, image, queue)
        while queue:
            point = queue.popleft()
            for gen_array, gen_image in zip(level.generators, level.generator_images):
                self._visit(level, point, gen_array, gen_image, queue)

    def _visit(
        self,
        level: _PartialLevel,
        point: int,
        gen_array: ArrayForm,
        gen_image: typing.Any,
        queue: collections.deque[int],
    ) -> None:
        next_point = gen_array[point]
        if next_point not in level.transversal:
            level.transversal[next_point] = compose_arrays(level.transversal[point], gen_array)
            level.transversal_images[next_point] = self.target.compose(
                level.transversal_images[point], gen_image
            )
            level.orbit.append(next_point)
            queue.append(next_point)

    ####################################################################################
    # sifting

    def _strip(self, array: ArrayForm, start: int) -> tuple[ArrayForm, int, list[int]]:
        """Sift a permutation through the levels at and below 'start'.

        Returns the residue, the level at which sifting stopped, and the orbit points visited.
        """
        points = []
        for depth in range(start, len(self.levels)):
            level = self.levels[depth]
            point = array[level.base_point]
            if point not in level.transversal:
                return array, depth, points
            points.append(point)
            array = compose_arrays(array, level.inverse(point))
        return array, len(self.levels), points

    def _strip_image(self, image: typing.Any, start: int, points: Sequence[int]) -> typing.Any:
        """Image of the residue of a sift, given the image of the permutation that was sifted."""
        for depth, point in enumerate(points, start=start):
            inverse_image = self.target.inverse(self.levels[depth].transversal_images[point])
            image = self.target.compose(image, inverse_image)
        return image

    def _absorb(self, depth: int, array: ArrayForm, image: typing.Any, stop: int) -> None:
        """Add a sift residue to the strong generators of the levels 'depth' through 'stop'."""
        if stop == len(self.levels):
            self._append_level(self._choose_base_point(array))
        for level_index in range(depth, stop + 1):
            self._add_generator(level_index, array, image)

    ####################################################################################
    # main loop

    def add_generators(self, arrays: Sequence[ArrayForm], images: Sequence[typing.Any]) -> None:
        """Add the initial generators, extending the base so that no generator fixes all of it."""
        nontrivial = [
            (array, image)
            for array, image in zip(arrays, images)
            if not is_identity_array(array)
        ]
        for array, _ in nontrivial:
            if all(array[level.base_point] == level.base_point for level in self.levels):
                self._append_level(self._choose_base_point(array))
        for array, image in nontrivial:
            for depth, level in enumerate(self.levels):
                self._add_generator(depth, array, image)
                if array[level.base_point] != level.base_point:
                    break

    def _check_level(self, depth: int) -> int | None:
        """Sift the Schreier generators of a level through the levels below.

        If a Schreier generator does not sift to the identity, add its residue to the strong
        generating set, and return the deepest level that received a new generator.  Return None if
        every Schreier generator of this level sifts to the identity.
        """
        level = self.levels[depth]
        position = 0
        while position < len(level.orbit):
            point = level.orbit[position]
            position += 1
            for gen_index, gen_array in enumerate(level.generators):
                if (point, gen_index) in level.sifted:
                    continue
                next_point = gen_array[point]
                array = compose_arrays(
                    compose_arrays(level.transversal[point], gen_array), level.inverse(next_point)
                )
                residue, stop, points = self._strip(array, depth + 1)
                if stop < len(self.levels) or not is_identity_array(residue):
                    image = self.target.compose(
                        self.target.compose(
                            level.transversal_images[point], level.generator_images[gen_index]
                        ),
                        self.target.inverse(level.transversal_images[next_point]),
                    )
                    image = self._strip_image(image, depth + 1, points)
                    self._absorb(depth + 1, residue, image, stop)
                    return stop
                level.sifted.add((point, gen_index))
        return None

    def run(self) -> None:
        """Sift Schreier generators until every level is complete."""
        depth = len(self.levels) - 1
        while depth >= 0:
            stop = self._check_level(depth)
            depth = depth - 1 if stop is None else stop

    def freeze(self) -> StabilizerChain:
        """Convert the levels under construction into an immutable stabilizer chain."""
        levels = [
            ChainLevel(
                base_point=level.base_point,
                orbit=tuple(level.orbit),
                transversal={
                    point: Permutation(list(array)) for point, array in level.transversal.items()
                },
                transversal_images=dict(level.transversal_images),
                strong_generators=tuple(Permutation(list(array)) for array in level.generators),
                strong_generator_images=tuple(level.generator_images),
            )
            for level in self.levels
        ]
        return StabilizerChain(self.degree, levels, self.target)


def build_chain(
    degree: int,
    generators: Sequence[comb.Permutation],
    *,
    images: Sequence[typing.Any] | None = None,
    target: ImageGroup | None = None,
    base: Sequence[int] = (),
    order: int | None = None,
    randomized: bool = False,
    seed: int | None = None,
) -> StabilizerChain:
    """Construct a complete stabilizer chain for the group generated by the given permutations.

    Args:
        degree: Number of points that the generators act on.
        generators: Generating permutations of the group.
        images: Images of the generators in the target group.  If not provided, the generators are
            their own images.
        target: Group containing the images.  Required if images are provided.
        base: Initial base points of the chain, which is extended as necessary.
        order: Order of the group, if known, which is checked against the constructed chain.
        randomized: If True, new base points are chosen randomly among the points moved by the
            permutation that requires them.  Otherwise, the smallest such point is chosen.
        seed: Seed for the choice of random base points.  Ignored unless randomized is True.

    Returns:
        StabilizerChain: A verified stabilizer chain with the given images.
    """
    if degree < 0:
        raise ValueError(f"Chain degrees must be nonnegative (provided: {degree})")
    for generator in generators:
        check_degree(generator, degree)
    if images is None:
        if target is not None:
            raise ValueError("A target group for chain images requires the images themselves")
        images = [Permutation.from_sympy(generator) for generator in generators]
        target = PermutationImages(degree)
    elif target is None:
        raise ValueError("Images for chain generators require a target group")
    if len(images) != len(generators):
        raise ValueError(
            f"Number of images ({len(images)}) does not match the number of generators"
            f" ({len(generators)})"
        )
    if len(set(base)) != len(base) or any(not 0 <= point < degree for point in base):
        raise ValueError(f"Invalid base points for a chain of degree {degree}: {tuple(base)}")
    if randomized and seed is not None:
        sympy.core.random.seed(seed)

    builder = _ChainBuilder(degree, target, base, randomized)
    builder.add_generators([tuple(generator.array_form) for generator in generators], images)
    builder.run()
    chain = builder.freeze()

    if order is not None and chain.order != order:
        raise ValueError(
            f"Provided group order ({order}) does not match the order of the group generated by"
            f" the provided generators ({chain.order})"
        )
    return chain
