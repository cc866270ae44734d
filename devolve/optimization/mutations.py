# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import devolve.common.typing as tp
from devolve.common import errors
from .configuration import Strategy
from .rng import UniformRng


JITTER_SCALE = 0.0001
EITHER_OR_PROBABILITY = 0.5
ROTATION_PROBABILITY = 0.1
# self-adaptation of the step size weights [=Fl, =Fu, =tau1], see Brest, J. et al., 2006,
# "Self-Adapting Control Parameters in Differential Evolution"
WEIGHT_LOWER_BOUND = 0.1
WEIGHT_UPPER_BOUND = 0.9
WEIGHT_CHANGE_PROBABILITY = 0.1


class Donors(tp.NamedTuple):
    """Three independently shuffled views of the population values"""

    first: np.ndarray
    second: np.ndarray
    third: np.ndarray


class MutationResult(tp.NamedTuple):
    mutants: np.ndarray
    mirror: np.ndarray  # points toward which out-of-bounds coordinates are reflected
    stepsize_weights: np.ndarray


class Mutator:
    """Builds the mutant population of a generation, and holds the random stream used for it.

    Parameters
    ----------
    rng: UniformRng
        random stream of the optimizer
    strategy: Strategy
        the mutation strategy (see the methods of the same name for the formulas)
    stepsize_weight: float
        the base differential weight F
    """

    def __init__(self, rng: UniformRng, strategy: Strategy, stepsize_weight: float) -> None:
        self.rng = rng
        self.strategy = Strategy(strategy)
        self.stepsize_weight = stepsize_weight
        self._mutate = getattr(self, self.strategy.value, None)
        if self._mutate is None:
            raise errors.DevolveNotImplementedError(f"Unknown strategy {self.strategy}")

    def donors(self, values: np.ndarray) -> Donors:
        """Draws the three permutations of the population (always three, whatever the strategy,
        so that the random stream is consumed the same way by all strategies)
        """
        return Donors(*(self.rng.shuffle(values) for _ in range(3)))

    def mutate(self, values: np.ndarray, best: np.ndarray, stepsize_weights: np.ndarray) -> MutationResult:
        """Creates the mutants of a generation

        Parameters
        ----------
        values: np.ndarray
            (num_members, dimension) current values of the population
        best: np.ndarray
            (dimension,) values of the best candidate ever found
        stepsize_weights: np.ndarray
            (num_members,) current step size weights of the members

        Returns
        -------
        MutationResult
            mutants, mirror points, and the step size weights for the next generations
        """
        donors = self.donors(values)
        return self._mutate(values, best, donors, stepsize_weights)  # type: ignore

    # strategies #

    def rand1_standard(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """donor1 + F (donor2 - donor3)"""
        mutants = donors.first + self.stepsize_weight * (donors.second - donors.third)
        return MutationResult(mutants, donors.first, weights)

    def best_member_with_jitter(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """best + (donor1 - current) (F + 0.0001 jitter), with a jitter per coordinate"""
        jitter = self.rng.next_reals(*current.shape)
        mutants = best + (donors.first - current) * (self.stepsize_weight + JITTER_SCALE * jitter)
        return MutationResult(mutants, np.tile(best, (current.shape[0], 1)), weights)

    def current_to_best_2_diffs(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """current + F (best - current) + F (donor1 - donor2)"""
        f = self.stepsize_weight
        mutants = current + f * (best - current) + f * (donors.first - donors.second)
        return MutationResult(mutants, donors.first, weights)

    def _dithered_weight(self, size: int) -> np.ndarray:
        return (1.0 - self.stepsize_weight) * self.rng.next_reals(size) + self.stepsize_weight

    def rand1_diff_with_per_vector_dither(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """donor1 + Fd (donor2 - donor3), with one dithered weight per coordinate
        shared by all members
        """
        dithered = self._dithered_weight(current.shape[1])
        mutants = donors.first + dithered * (donors.second - donors.third)
        return MutationResult(mutants, donors.first, weights)

    def rand1_diff_with_dither(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """donor1 + Fd (donor2 - donor3), with one dithered weight for the whole generation"""
        dithered = float(self._dithered_weight(1)[0])
        mutants = donors.first + dithered * (donors.second - donors.third)
        return MutationResult(mutants, donors.first, weights)

    def either_or_with_optimal_recombination(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """For each member, with probability 1/2 current + F (donor1 - donor2),
        otherwise current + K (donor1 + donor2 - 2 current) with K = (F + 1) / 2
        """
        f = self.stepsize_weight
        k = 0.5 * (f + 1.0)  # invariant with respect to the probability used
        use_weight = self.rng.next_reals(current.shape[0]) < EITHER_OR_PROBABILITY
        mutants = np.where(
            use_weight[:, None],
            current + f * (donors.first - donors.second),
            current + k * (donors.first + donors.second - 2.0 * current),
        )
        return MutationResult(mutants, donors.first, weights)

    def adapt_weights(self, weights: np.ndarray) -> np.ndarray:
        """Returns new step size weights, each of them being redrawn uniformly in
        [WEIGHT_LOWER_BOUND, WEIGHT_UPPER_BOUND] with probability WEIGHT_CHANGE_PROBABILITY
        """
        adapted = np.array(weights, dtype=float, copy=True)
        for k in range(adapted.size):
            if self.rng.next_real() < WEIGHT_CHANGE_PROBABILITY:
                adapted[k] = WEIGHT_LOWER_BOUND + self.rng.next_real() * (WEIGHT_UPPER_BOUND - WEIGHT_LOWER_BOUND)
        return adapted

    def rand1_selfadaptive_with_rotation(
        self, current: np.ndarray, best: np.ndarray, donors: Donors, weights: np.ndarray
    ) -> MutationResult:
        """For each member, with probability 0.1 a random permutation of the coordinates
        of best, otherwise best + w (donor1 - donor2) with w the self-adapted weight of the member
        """
        weights = self.adapt_weights(weights)
        mutants = np.empty_like(current)
        for k in range(current.shape[0]):
            if self.rng.next_real() < ROTATION_PROBABILITY:
                mutants[k] = self.rng.shuffle(best)
            else:
                mutants[k] = best + weights[k] * (donors.first[k] - donors.second[k])
        return MutationResult(mutants, donors.first, weights)
