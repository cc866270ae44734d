# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import devolve.common.typing as tp
from devolve.common import errors
from .configuration import CrossoverType
from .rng import UniformRng


# probability for each member to redraw its crossover probability [=tau2]
# see Brest, J. et al., 2006, "Self-Adapting Control Parameters in Differential Evolution"
CROSSOVER_CHANGE_PROBABILITY = 0.1


class Crossover:
    """Blends original and mutant populations coordinate by coordinate.

    Parameters
    ----------
    rng: UniformRng
        random stream of the optimizer
    crossover_type: CrossoverType
        scheme converting the crossover probability CR of a member into the probability
        for each of its coordinates to be taken from the mutant:

        - "normal": p = CR
        - "binomial": p = CR (1 - 1/D) + 1/D, so that at least one coordinate
          is expected to come from the mutant
        - "exponential": p = (1 - CR^D) / (D (1 - CR)), the mean fraction of coordinates
          obtained through exponential crossover (1 in the limit CR = 1)
    adaptive: bool
        whether crossover probabilities are redrawn randomly from time to time
    """

    def __init__(self, rng: UniformRng, crossover_type: CrossoverType, adaptive: bool = False) -> None:
        self.rng = rng
        self.crossover_type = CrossoverType(crossover_type)
        self.adaptive = adaptive

    def mutation_probabilities(self, crossover_probabilities: np.ndarray, dimension: int) -> np.ndarray:
        cr = np.asarray(crossover_probabilities, dtype=float)
        if self.crossover_type == CrossoverType.NORMAL:
            return cr.copy()
        if self.crossover_type == CrossoverType.BINOMIAL:
            return cr * (1.0 - 1.0 / dimension) + 1.0 / dimension
        if self.crossover_type == CrossoverType.EXPONENTIAL:
            probas = np.ones_like(cr)
            below = cr < 1.0
            probas[below] = (1.0 - cr[below] ** dimension) / (dimension * (1.0 - cr[below]))
            return probas
        raise errors.DevolveNotImplementedError(f"Unknown crossover type {self.crossover_type}")

    def mask(self, mutation_probabilities: np.ndarray, dimension: int) -> np.ndarray:
        """Boolean (num_members, dimension) mask, True where the coordinate comes from the mutant.
        One draw per coordinate, member after member.
        """
        draws = self.rng.next_reals(len(mutation_probabilities), dimension)
        return draws < np.asarray(mutation_probabilities)[:, None]

    def adapt(self, crossover_probabilities: np.ndarray) -> np.ndarray:
        """Returns new crossover probabilities, each of them being redrawn uniformly
        with probability CROSSOVER_CHANGE_PROBABILITY.
        """
        adapted = np.array(crossover_probabilities, dtype=float, copy=True)
        for k in range(adapted.size):
            if self.rng.next_real() < CROSSOVER_CHANGE_PROBABILITY:
                adapted[k] = self.rng.next_real()
        return adapted

    def apply(
        self, originals: np.ndarray, mutants: np.ndarray, crossover_probabilities: np.ndarray
    ) -> tp.Tuple[np.ndarray, np.ndarray]:
        """Blends the originals and mutants

        Parameters
        ----------
        originals: np.ndarray
            (num_members, dimension) values before mutation
        mutants: np.ndarray
            (num_members, dimension) mutant values
        crossover_probabilities: np.ndarray
            (num_members,) current crossover probabilities of the members

        Returns
        -------
        np.ndarray
            the blended (num_members, dimension) values
        np.ndarray
            the crossover probabilities for this generation (adapted if required)
        """
        if self.adaptive:
            crossover_probabilities = self.adapt(crossover_probabilities)
        dimension = originals.shape[1]
        mask = self.mask(self.mutation_probabilities(crossover_probabilities, dimension), dimension)
        return np.where(mask, mutants, originals), np.asarray(crossover_probabilities)
