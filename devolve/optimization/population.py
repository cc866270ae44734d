# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import sys
import numpy as np
import devolve.common.typing as tp


# cost assigned to candidates which could not be evaluated
WORST_COST = sys.float_info.max


class Candidate:
    """A point of the search space along with its cost (lower is better)

    Parameters
    ----------
    values: array-like
        the coordinates of the point
    cost: float
        the cost of the point, :code:`WORST_COST` if it was not evaluated successfully
    """

    def __init__(self, values: tp.ArrayLike, cost: float = WORST_COST) -> None:
        self.values = np.array(values, dtype=float, copy=True)
        self.cost = float(cost)

    @property
    def dimension(self) -> int:
        return self.values.size

    def copy(self) -> "Candidate":
        return Candidate(self.values, self.cost)

    def __repr__(self) -> str:
        return f"Candidate(values={self.values.tolist()}, cost={self.cost})"

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.cost == other.cost and np.array_equal(self.values, other.values)


class MemberState(tp.NamedTuple):
    """Per-member control parameters of a run, replaced (not modified) at each generation"""

    stepsize_weights: np.ndarray
    crossover_probabilities: np.ndarray

    @classmethod
    def uniform(cls, num_members: int, stepsize_weight: float, crossover_probability: float) -> "MemberState":
        return cls(np.full(num_members, stepsize_weight), np.full(num_members, crossover_probability))


class Population:
    """Fixed-size ordered collection of candidates, stored as a
    (num_members, dimension) array of values and a (num_members,) array of costs.

    Positions identify the "same slot" within one generation, they bear no
    meaning from one generation to the next.
    """

    def __init__(self, values: np.ndarray, costs: tp.Optional[np.ndarray] = None) -> None:
        values = np.array(values, dtype=float, copy=True)
        if values.ndim != 2 or not values.size:
            raise ValueError(f"Population values must be a non-empty 2d array, got shape {values.shape}")
        self.values = values
        self.costs = (
            np.full(values.shape[0], WORST_COST)
            if costs is None
            else np.array(costs, dtype=float, copy=True)
        )
        if self.costs.shape != (values.shape[0],):
            raise ValueError(f"Got {self.costs.shape} costs for {values.shape[0]} members")

    @classmethod
    def from_candidates(cls, candidates: tp.Sequence[Candidate]) -> "Population":
        return cls(np.array([c.values for c in candidates]), np.array([c.cost for c in candidates]))

    @property
    def num_members(self) -> int:
        return self.values.shape[0]

    @property
    def dimension(self) -> int:
        return self.values.shape[1]

    def __len__(self) -> int:
        return self.num_members

    def __getitem__(self, index: int) -> Candidate:
        return Candidate(self.values[index], self.costs[index])

    def __iter__(self) -> tp.Iterator[Candidate]:
        return (self[k] for k in range(self.num_members))

    def best_index(self) -> int:
        """Index of the member with minimal cost (first one in case of ties).
        Only the minimum is selected, the population is not sorted.
        """
        return int(np.argmin(self.costs))

    def best(self) -> Candidate:
        return self[self.best_index()]

    def copy(self) -> "Population":
        return Population(self.values, self.costs)

    def __repr__(self) -> str:
        return f"Population(num_members={self.num_members}, dimension={self.dimension})"
