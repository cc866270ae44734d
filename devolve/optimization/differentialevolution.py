# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
import numpy as np
import devolve.common.typing as tp
from devolve.common import errors
from . import bounds
from .configuration import Configuration
from .crossover import Crossover
from .mutations import Mutator
from .population import WORST_COST, Candidate, MemberState, Population
from .problem import Problem
from .rng import UniformRng


logger = logging.getLogger(__name__)
_CALLBACK_NAMES = ("evaluation", "generation")
_OptimCallBack = tp.Union[
    tp.Callable[["DifferentialEvolution", Candidate], None], tp.Callable[["DifferentialEvolution"], None]
]


class MinimizationResult(tp.NamedTuple):
    end_type: tp.Any  # provided by the termination policy
    values: np.ndarray
    cost: float


class DifferentialEvolution:
    """Differential evolution, a population-based, derivative-free global optimizer
    for box-constrained problems.

    The algorithm and strategy names are taken from:
    Price, K., Storn, R., 1997. Differential Evolution - A Simple and Efficient Heuristic
    for Global Optimization over Continuous Spaces. Journal of Global Optimization, Vol. 11, pp. 341-359.

    At each generation the whole population is replaced by the mutated, crossed over and
    repaired candidates, while the best candidate ever found is kept aside (elitism) and
    serves as base for several strategies. Evaluation failures do not interrupt the optimization,
    the failing candidates are just given the worst possible cost.

    Parameters
    ----------
    configuration: Configuration
        the configuration of the run (defaults to :code:`Configuration()`)

    Example
    -------
    >>> problem = Problem(corefuncs.sphere, BoundaryConstraint(-10, 10), [1.0, 1.0])
    >>> optimizer = DifferentialEvolution(Configuration(seed=12, population_members=40))
    >>> end_type, values, cost = optimizer.minimize(problem, EndCriteria(max_iterations=500))

    Note
    ----
    The random stream is created with the optimizer, so that calling :code:`minimize`
    a second time continues it instead of replaying it. Create a new optimizer
    for reproducible runs.
    """

    def __init__(self, configuration: tp.Optional[Configuration] = None) -> None:
        self._configuration = Configuration() if configuration is None else configuration
        self.name = repr(self._configuration)
        config = self._configuration
        self._rng = UniformRng(config.seed)
        self._mutator = Mutator(self._rng, config.strategy, config.stepsize_weight)
        self._crossover = Crossover(self._rng, config.crossover_type, adaptive=config.crossover_is_adaptive)
        self._callbacks: tp.Dict[str, tp.List[tp.Any]] = {}
        # run state
        self._lower_bound = np.empty(0)
        self._upper_bound = np.empty(0)
        self._member_state: tp.Optional[MemberState] = None
        self._population: tp.Optional[Population] = None
        self._best: tp.Optional[Candidate] = None
        self._num_generations = 0
        self._num_evaluations = 0
        self._warned_nan = False

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def lower_bound(self) -> np.ndarray:
        return self._lower_bound.copy()

    @property
    def upper_bound(self) -> np.ndarray:
        return self._upper_bound.copy()

    @property
    def best(self) -> tp.Optional[Candidate]:
        """Best candidate ever found during the current (or last) run"""
        return None if self._best is None else self._best.copy()

    @property
    def population(self) -> tp.Optional[Population]:
        return None if self._population is None else self._population.copy()

    @property
    def member_state(self) -> tp.Optional[MemberState]:
        state = self._member_state
        if state is None:
            return None
        return MemberState(state.stepsize_weights.copy(), state.crossover_probabilities.copy())

    @property
    def num_generations(self) -> int:
        return self._num_generations

    @property
    def num_evaluations(self) -> int:
        return self._num_evaluations

    def __repr__(self) -> str:
        return f"Instance of {self.name}"

    def register_callback(self, name: str, callback: _OptimCallBack) -> None:
        """Add a callback method called at each evaluation or at the end of each generation.

        Parameters
        ----------
        name: str
            name of the hook, "evaluation" or "generation"
        callback: callable
            "evaluation" callbacks are called as :code:`callback(optimizer, candidate)` after
            each evaluation, "generation" callbacks as :code:`callback(optimizer)` once the
            best candidate has been updated for the generation.
        """
        if name not in _CALLBACK_NAMES:
            raise errors.DevolveValueError(f"Unknown callback name {name!r}, choose among {_CALLBACK_NAMES}")
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        self._callbacks = {}

    def minimize(self, problem: Problem, end_criteria: tp.TerminationPolicy[tp.Any]) -> MinimizationResult:
        """Minimizes the cost function of the problem within its constraint.

        Parameters
        ----------
        problem: Problem
            the problem, its current value is used as the first member of the initial population
        end_criteria: EndCriteria
            termination policy, asked once per generation whether the maximum number
            of iterations is reached and whether the generation's best cost is stationary

        Returns
        -------
        MinimizationResult
            the reason for termination (as provided by the policy), and the values and cost
            of the best candidate found. They are also written back to the problem.
        """
        self._setup(problem)
        self._population = self._initial_population(problem)
        self._best = self._population.best()
        logger.info(
            "Starting %s on %s dimension(s), initial best cost is %s", self.name, problem.dimension, self._best.cost
        )
        fx_old = self._best.cost
        iteration = 0
        stationary_iterations = 0
        while True:
            end_type = end_criteria.check_max_iterations(iteration)
            iteration += 1
            if end_type is not None:
                break
            self._population = self._next_generation(problem)
            generation_best = self._population.best()
            if generation_best.cost < self._best.cost:
                self._best = generation_best
            self._num_generations += 1
            logger.debug(
                "Generation %s: best cost %s (ever: %s)", self._num_generations, generation_best.cost, self._best.cost
            )
            for callback in self._callbacks.get("generation", []):
                callback(self)
            fx_new = generation_best.cost
            end_type, stationary_iterations = end_criteria.check_stationary_function_value(
                fx_old, fx_new, stationary_iterations
            )
            if end_type is not None:
                break
            fx_old = fx_new
        problem.set_current_value(self._best.values)
        problem.set_function_value(self._best.cost)
        logger.info(
            "%s stopped after %s generation(s) (%s), best cost is %s",
            self.name,
            self._num_generations,
            end_type,
            self._best.cost,
        )
        return MinimizationResult(end_type, self._best.values.copy(), self._best.cost)

    def _setup(self, problem: Problem) -> None:
        initial = problem.current_value
        if not initial.size:
            raise errors.ConfigurationError("No variable to optimize in this problem")
        lower = np.array(problem.constraint.lower_bound(initial), dtype=float)
        upper = np.array(problem.constraint.upper_bound(initial), dtype=float)
        if lower.shape != initial.shape or upper.shape != initial.shape:
            raise errors.ConfigurationError(
                f"Bounds of shapes {lower.shape} and {upper.shape} do not match the point shape {initial.shape}"
            )
        with np.errstate(over="ignore"):
            finite = np.all(np.isfinite(upper - lower))
        if not finite:
            raise errors.ConfigurationError(
                "Differential evolution requires finite bounds to draw its initial population"
            )
        if np.any(lower > upper):
            raise errors.ConfigurationError("Lower bounds must not be above upper bounds")
        if np.any(initial < lower) or np.any(initial > upper):
            warnings.warn(
                f"Initial value {initial.tolist()} lies outside of the bounds, "
                "repaired candidates may not be contained in the bounds",
                errors.OutOfBoundsGuessWarning,
            )
        self._lower_bound, self._upper_bound = lower, upper
        config = self._configuration
        self._member_state = MemberState.uniform(
            config.population_members, config.stepsize_weight, config.crossover_probability
        )
        self._num_generations = 0
        self._num_evaluations = 0
        self._warned_nan = False

    def _initial_population(self, problem: Problem) -> Population:
        """First member is the current value of the problem, the others are drawn
        uniformly in the bounds
        """
        num_members = self._configuration.population_members
        values = np.empty((num_members, problem.dimension))
        values[0] = problem.current_value
        draws = self._rng.next_reals(num_members - 1, problem.dimension)
        values[1:] = self._lower_bound + (self._upper_bound - self._lower_bound) * draws
        costs = np.array([self._evaluate(problem, x) for x in values])
        return Population(values, costs)

    def _next_generation(self, problem: Problem) -> Population:
        assert self._population is not None and self._best is not None and self._member_state is not None
        current = self._population.values
        mutation = self._mutator.mutate(current, self._best.values, self._member_state.stepsize_weights)
        trials, crossover_probabilities = self._crossover.apply(
            current, mutation.mutants, self._member_state.crossover_probabilities
        )
        self._member_state = MemberState(mutation.stepsize_weights, crossover_probabilities)
        if self._configuration.apply_bounds:
            trials = bounds.reflect(trials, mutation.mirror, self._lower_bound, self._upper_bound, self._rng)
        costs = np.array([self._evaluate(problem, x) for x in trials])
        return Population(trials, costs)

    def _evaluate(self, problem: Problem, values: np.ndarray) -> float:
        try:
            cost = problem.value(values)
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("Evaluation failed at %s: %r", values.tolist(), e)
            cost = WORST_COST
        if np.isnan(cost):
            if not self._warned_nan:
                warnings.warn(
                    "Cost function returned NaN, such candidates are given the worst possible cost",
                    errors.BadLossWarning,
                )
                self._warned_nan = True
            cost = WORST_COST
        self._num_evaluations += 1
        if self._callbacks.get("evaluation"):
            candidate = Candidate(values, cost)
            for callback in self._callbacks["evaluation"]:
                callback(self, candidate)
        return cost
