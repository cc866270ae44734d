# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import devolve.common.typing as tp


class UniformRng:
    """Source of uniform variates in [0, 1) used by the differential evolution engine.

    All randomness of a run goes through this single stream, which makes
    runs with the same seed reproducible draw by draw.

    Parameters
    ----------
    seed: int or None
        seed of the underlying Mersenne Twister (:code:`np.random.RandomState`).
        :code:`None` seeds from the operating system.

    Note
    ----
    Vectorized draws consume the stream in C order, so :code:`next_reals(n, d)`
    provides the same values as :code:`n * d` successive calls to :code:`next_real()`.
    """

    def __init__(self, seed: tp.Optional[int] = None) -> None:
        self.random_state = np.random.RandomState(seed)

    def next_real(self) -> float:
        return float(self.random_state.random_sample())

    def next_reals(self, *shape: int) -> np.ndarray:
        return self.random_state.random_sample(shape)

    def permutation(self, size: int) -> np.ndarray:
        """Random permutation of range(size), using the Durstenfeld variant of the
        Fisher-Yates shuffle: for i from size - 1 down to 1, swap i with
        j = floor(u * (i + 1)) where u is the next uniform of the stream.
        This consumes exactly size - 1 uniforms.
        """
        indices = np.arange(size)
        if size < 2:
            return indices
        draws = self.next_reals(size - 1)
        for k, i in enumerate(range(size - 1, 0, -1)):
            j = min(int(draws[k] * (i + 1)), i)  # guards against rounding up
            indices[i], indices[j] = indices[j], indices[i]
        return indices

    def shuffle(self, array: np.ndarray) -> np.ndarray:
        """Returns a copy of the array with its first axis permuted"""
        array = np.asarray(array)
        return array[self.permutation(array.shape[0])]
