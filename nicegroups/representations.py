"""Linear representations of nice finite groups, defined by the images of group generators

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

Representation matrices are right-acting, as for Permutation.to_matrix: the image of compose(x, y)
is image(x) @ image(y).
"""

from __future__ import annotations

import functools
import operator
import typing
from collections.abc import Sequence

import galois
import numpy as np
import numpy.typing as npt
import scipy.sparse
import sympy.combinatorics as comb

from nicegroups import bsgs
from nicegroups.cache import cached_once
from nicegroups.permutations import Permutation, check_degree

if typing.TYPE_CHECKING:
    from nicegroups.abstract import NiceFiniteGroup

Element = typing.Any
Matrix = (
    npt.NDArray[np.int_] | npt.NDArray[np.float64] | galois.FieldArray | scipy.sparse.sparray
)
MatrixPair = tuple[Matrix, Matrix]


class _MatrixPairs:
    """Image group for stabilizer chains whose images are (matrix, inverse matrix) pairs."""

    def __init__(self, identity: Matrix) -> None:
        self._identity = identity

    @property
    def identity(self) -> MatrixPair:
        return self._identity, self._identity

    def compose(self, xx: MatrixPair, yy: MatrixPair) -> MatrixPair:
        return xx[0] @ yy[0], yy[1] @ xx[1]

    def inverse(self, xx: MatrixPair) -> MatrixPair:
        return xx[1], xx[0]


def _identity_like(matrix: Matrix) -> Matrix:
    """The identity matrix of the same size and type as a given square matrix."""
    if scipy.sparse.issparse(matrix):
        return scipy.sparse.eye_array(matrix.shape[0], dtype=matrix.dtype, format="csr")
    if isinstance(matrix, galois.FieldArray):
        return type(matrix).Identity(matrix.shape[0])
    return np.eye(matrix.shape[0], dtype=matrix.dtype)


def _is_identity(matrix: Matrix) -> bool:
    """Is this square matrix the identity matrix?"""
    identity = _identity_like(matrix)
    if scipy.sparse.issparse(matrix):
        return bool(np.allclose((matrix - identity).data, 0))
    if isinstance(matrix, galois.FieldArray) or np.issubdtype(matrix.dtype, np.integer):
        return bool(np.array_equal(matrix, identity))
    return bool(np.allclose(matrix, identity))


def _inverse(matrix: Matrix) -> Matrix:
    """Inverse of a matrix, which stays integer-valued if the matrix is an integer matrix."""
    if scipy.sparse.issparse(matrix):
        return scipy.sparse.csr_array(_inverse(matrix.toarray()))
    inverse = np.linalg.inv(matrix)
    if isinstance(matrix, galois.FieldArray) or not np.issubdtype(matrix.dtype, np.integer):
        return inverse
    rounded = np.rint(inverse)
    if not np.allclose(inverse, rounded):
        raise ValueError(f"Integer matrix does not have an integer inverse:\n{matrix}")
    return rounded.astype(matrix.dtype)


class RepByImages:
    """Representation of a group, defined by the images of the generators of the group.

    The image of an arbitrary group member is computed by factoring its nice image through a
    stabilizer chain whose transversal members carry their representation matrices (together with
    their inverses), so every image is a product of at most one matrix per level of the chain.

    This class does not check that the provided images define a homomorphism.  If they do not, the
    images of group members depend on how they factor through the chain.
    """

    _group: NiceFiniteGroup
    _images: tuple[Matrix, ...]
    _inverse_images: tuple[Matrix, ...]

    def __init__(
        self,
        group: NiceFiniteGroup,
        images: Sequence[Matrix],
        inverse_images: Sequence[Matrix] | None = None,
        *,
        dimension: int | None = None,
    ) -> None:
        if len(images) != group.num_generators:
            raise ValueError(
                f"Number of images ({len(images)}) does not match the number of generators of"
                f" {group} ({group.num_generators})"
            )
        if inverse_images is None:
            inverse_images = [_inverse(image) for image in images]
        elif len(inverse_images) != len(images):
            raise ValueError("Each image of a group generator requires exactly one inverse image")
        self._group = group
        self._images = tuple(images)
        self._inverse_images = tuple(inverse_images)
        self._dimension = self._get_dimension(group, self._images, dimension)
        self._identity = (
            _identity_like(self._images[0]) if self._images else np.eye(self._dimension, dtype=int)
        )

        for image, inverse in zip(self._images, self._inverse_images):
            if np.shape(image) != np.shape(inverse) or not _is_identity(image @ inverse):
                raise ValueError(f"Inverse image is not the inverse of its image:\n{image}")

    @staticmethod
    def _get_dimension(
        group: NiceFiniteGroup, images: Sequence[Matrix], dimension: int | None
    ) -> int:
        if dimension is None:
            if not images:
                raise ValueError(f"The dimension of a representation of {group} is required")
            dimension = images[0].shape[0]
        if any(image.shape != (dimension, dimension) for image in images):
            raise ValueError("Representation images must be square matrices of equal dimension")
        return dimension

    @property
    def group(self) -> NiceFiniteGroup:
        """The represented group."""
        return self._group

    @property
    def dimension(self) -> int:
        """Dimension of the vector space that this representation acts on."""
        return self._dimension

    @property
    def images(self) -> tuple[Matrix, ...]:
        """Images of the generators of the represented group."""
        return self._images

    @property
    def inverse_images(self) -> tuple[Matrix, ...]:
        """Inverses of the images of the generators of the represented group."""
        return self._inverse_images

    @cached_once
    def chain(self) -> bsgs.StabilizerChain:
        """Stabilizer chain of the represented group, whose images are (image, inverse) pairs."""
        generators = [self._group.nice_image(generator) for generator in self._group.generators]
        return bsgs.build_chain(
            self._group.degree,
            generators,
            images=list(zip(self._images, self._inverse_images)),
            target=_MatrixPairs(self._identity),
            base=self._group.chain.base,
            order=self._group.order,
        )

    def image(self, element: Element) -> Matrix:
        """The matrix that represents a group member."""
        return self.chain.image(self._group.nice_image(element))[0]

    def inverse_image(self, element: Element) -> Matrix:
        """The inverse of the matrix that represents a group member."""
        return self.chain.image(self._group.nice_image(element))[1]

    def __call__(self, element: Element) -> Matrix:
        return self.image(element)

    def group_sum(self) -> Matrix:
        """Sum of the images of all members of the represented group.

        Every group member factors uniquely as a product of transversal members, one from each level
        of the stabilizer chain, so this sum is the product of the sums over each transversal.
        """
        sums = [
            functools.reduce(operator.add, [pair[0] for pair in transversal])
            for transversal in self.chain.images_decomposition()
        ]
        return functools.reduce(operator.matmul, sums, self._identity)


def permutation_rep(
    group: NiceFiniteGroup, dimension: int, permutations: Sequence[comb.Permutation]
) -> RepByImages:
    """Representation of a group by permutation matrices.

    The i-th generator of the group is represented by the matrix of the i-th permutation.
    Images are sparse matrices.
    """
    images = []
    for perm in permutations:
        check_degree(perm, dimension)
        images.append(Permutation.from_sympy(perm).to_sparse_matrix())
    return RepByImages(group, images, [image.T.tocsr() for image in images], dimension=dimension)
