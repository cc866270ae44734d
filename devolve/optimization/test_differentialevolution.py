# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import itertools
import typing as tp
import pytest
import numpy as np
from devolve.common import errors
from devolve.common import testing
from devolve.functions import corefuncs
from . import configuration as conf
from .configuration import Configuration, CrossoverType, Strategy
from .differentialevolution import DifferentialEvolution
from .endcriteria import EndCriteria, EndType
from .population import WORST_COST, Candidate
from .problem import BoundaryConstraint, NoConstraint, NonhomogeneousBoundaryConstraint, Problem
from .rng import UniformRng


class _Recorder:
    """Records the evaluated candidates and the best cost after each generation"""

    def __init__(self, optimizer: DifferentialEvolution) -> None:
        self.evaluated: tp.List[Candidate] = []
        self.bests: tp.List[float] = []
        self.min_cost_per_generation: tp.List[float] = []
        optimizer.register_callback("evaluation", self.on_evaluation)
        optimizer.register_callback("generation", self.on_generation)

    def on_evaluation(self, optimizer: DifferentialEvolution, candidate: Candidate) -> None:
        self.evaluated.append(candidate)

    def on_generation(self, optimizer: DifferentialEvolution) -> None:
        best = optimizer.best
        assert best is not None
        self.bests.append(best.cost)
        self.min_cost_per_generation.append(min(c.cost for c in self.evaluated))


def _sphere3_problem(dimension: int = 2) -> Problem:
    return Problem(corefuncs.sphere3, BoundaryConstraint(-10, 10), np.zeros(dimension))


def test_convergence_scenario() -> None:
    config = Configuration(
        strategy="best_member_with_jitter",
        crossover_type="normal",
        population_members=40,
        stepsize_weight=0.2,
        crossover_probability=0.9,
        seed=12,
    )
    problem = _sphere3_problem()
    end_type, values, cost = config().minimize(problem, EndCriteria(500, function_epsilon=0.0))
    assert end_type == EndType.MAX_ITERATIONS
    np.testing.assert_allclose(values, [3.0, 3.0], atol=1e-3)
    assert cost < 1e-6


@testing.parametrized(**{name: (name,) for name in sorted(conf.registry)})
def test_presets_run(name: str) -> None:
    config = conf.registry[name].with_seed(24).with_population_members(30)
    problem = _sphere3_problem(3)
    result = config().minimize(problem, EndCriteria(100, function_epsilon=0.0))
    assert result.end_type == EndType.MAX_ITERATIONS
    assert result.cost <= corefuncs.sphere3(np.zeros(3))


# without selection, only strategies built around the best candidate contract the population
@testing.parametrized(
    jitter=(Strategy.BEST_MEMBER_WITH_JITTER, 0.2),
    current_to_best=(Strategy.CURRENT_TO_BEST_2_DIFFS, 0.5),
    selfadaptive=(Strategy.RAND1_SELFADAPTIVE_WITH_ROTATION, 0.5),
)
def test_best_guided_strategies_converge(strategy: Strategy, stepsize_weight: float) -> None:
    config = Configuration(strategy=strategy, stepsize_weight=stepsize_weight, population_members=30, seed=24)
    result = config().minimize(_sphere3_problem(3), EndCriteria(100, function_epsilon=0.0))
    assert result.cost < 0.01, f"{strategy} did not converge"


@testing.parametrized(
    **{
        f"{s.value}_{c.value}": (s, c)
        for s, c in itertools.product(Strategy, CrossoverType)
    }
)
def test_elitism_and_bounds(strategy: Strategy, crossover_type: CrossoverType) -> None:
    config = Configuration(
        strategy=strategy,
        crossover_type=crossover_type,
        population_members=12,
        stepsize_weight=0.8,
        crossover_probability=0.5,
        seed=42,
        crossover_is_adaptive=strategy == Strategy.RAND1_SELFADAPTIVE_WITH_ROTATION,
    )
    lower, upper = np.array([-2.0, 0.5, 10.0]), np.array([3.0, 1.0, 10.5])
    problem = Problem(corefuncs.rastrigin, NonhomogeneousBoundaryConstraint(lower, upper), [0.0, 0.75, 10.25])
    optimizer = config()
    recorder = _Recorder(optimizer)
    optimizer.minimize(problem, EndCriteria(30, function_epsilon=0.0))
    assert len(recorder.bests) == 30
    # elitism
    assert all(b1 >= b2 for b1, b2 in zip(recorder.bests, recorder.bests[1:]))
    np.testing.assert_array_equal(recorder.bests, recorder.min_cost_per_generation)
    # containment
    testing.assert_within_bounds(np.array([c.values for c in recorder.evaluated]), lower, upper)


def test_bounded_optimum_on_the_boundary() -> None:
    problem = Problem(corefuncs.sphere3, BoundaryConstraint(-1, 1), [0.0, 0.0])
    optimizer = Configuration(population_members=20, seed=12)()
    recorder = _Recorder(optimizer)
    result = optimizer.minimize(problem, EndCriteria(200, function_epsilon=0.0))
    testing.assert_within_bounds(np.array([c.values for c in recorder.evaluated]), -1.0, 1.0)
    # reflection toward the mirror only approaches the corner (1, 1) progressively
    assert np.all(result.values > 0.5)
    assert result.cost < corefuncs.sphere3(np.array([0.5, 0.5]))
    assert recorder.bests[-1] < recorder.bests[0]


def test_determinism() -> None:
    config = conf.Rand1DE.with_seed(7).with_population_members(10)
    histories = []
    for _ in range(2):
        optimizer = config()
        recorder = _Recorder(optimizer)
        result = optimizer.minimize(_sphere3_problem(), EndCriteria(20, function_epsilon=0.0))
        histories.append((recorder.evaluated, result))
    assert histories[0][0] == histories[1][0]
    np.testing.assert_array_equal(histories[0][1].values, histories[1][1].values)
    other = config.with_seed(8)()
    recorder = _Recorder(other)
    other.minimize(_sphere3_problem(), EndCriteria(20, function_epsilon=0.0))
    assert recorder.evaluated != histories[0][0]


def test_initial_population() -> None:
    optimizer = Configuration(population_members=5, seed=3)()
    recorder = _Recorder(optimizer)
    problem = Problem(corefuncs.sphere, NonhomogeneousBoundaryConstraint([0, -4], [1, 4]), [0.5, 0.0])
    optimizer.minimize(problem, EndCriteria(1))
    initial = np.array([c.values for c in recorder.evaluated[:5]])
    draws = UniformRng(3).next_reals(4, 2)
    expected = np.concatenate([[[0.5, 0.0]], np.array([0.0, -4.0]) + np.array([1.0, 8.0]) * draws])
    np.testing.assert_array_almost_equal(initial, expected)


def test_counters_and_write_back() -> None:
    optimizer = Configuration(population_members=8, seed=1)()
    problem = _sphere3_problem()
    result = optimizer.minimize(problem, EndCriteria(7, function_epsilon=0.0))
    assert result.end_type == EndType.MAX_ITERATIONS
    assert optimizer.num_generations == 7
    assert optimizer.num_evaluations == 8 * 8
    assert problem.function_evaluations == 8 * 8
    np.testing.assert_array_equal(problem.current_value, result.values)
    assert problem.function_value == result.cost
    best = optimizer.best
    assert best is not None and best.cost == result.cost
    np.testing.assert_array_equal(optimizer.lower_bound, [-10, -10])
    np.testing.assert_array_equal(optimizer.upper_bound, [10, 10])
    population, state = optimizer.population, optimizer.member_state
    assert population is not None and state is not None
    assert len(population) == 8
    np.testing.assert_array_equal(state.stepsize_weights, [0.2] * 8)
    # a new run continues the random stream but resets the counters
    second = optimizer.minimize(problem, EndCriteria(3, function_epsilon=0.0))
    assert optimizer.num_generations == 3
    assert second.cost <= result.cost  # starts from the previous best


def test_stationary_termination() -> None:
    optimizer = Configuration(population_members=20, seed=12)()
    end_type, _, _ = optimizer.minimize(_sphere3_problem(), EndCriteria(1000, 5, function_epsilon=1e-6))
    assert end_type == EndType.STATIONARY_FUNCTION_VALUE
    assert end_type.succeeded
    assert optimizer.num_generations < 1000


def test_failure_tolerance() -> None:
    func = corefuncs.FailingFunction(corefuncs.sphere3, threshold=5.0)
    problem = Problem(func, BoundaryConstraint(-10, 10), [8.0, 0.0])  # failing initial guess
    optimizer = Configuration(population_members=40, seed=12)()
    recorder = _Recorder(optimizer)
    result = optimizer.minimize(problem, EndCriteria(200, function_epsilon=0.0))
    assert func.num_failures > 0
    failed = [c for c in recorder.evaluated if c.values[0] > 5.0]
    assert failed and all(c.cost == WORST_COST for c in failed)
    assert result.values[0] <= 5.0
    assert result.cost < WORST_COST
    np.testing.assert_allclose(result.values, [3.0, 3.0], atol=1e-3)


def test_nan_cost_warns_once() -> None:
    def func(x: np.ndarray) -> float:
        return float("nan") if x[0] > 0 else corefuncs.sphere(x)

    problem = Problem(func, BoundaryConstraint(-1, 1), [-0.5, 0.5])
    optimizer = Configuration(population_members=10, seed=12)()
    recorder = _Recorder(optimizer)
    with pytest.warns(errors.BadLossWarning) as record:
        result = optimizer.minimize(problem, EndCriteria(5, function_epsilon=0.0))
    assert sum(issubclass(w.category, errors.BadLossWarning) for w in record) == 1
    assert all(c.cost == WORST_COST for c in recorder.evaluated if c.values[0] > 0)
    assert result.values[0] <= 0


def test_out_of_bounds_guess_warns() -> None:
    problem = Problem(corefuncs.sphere, BoundaryConstraint(-1, 1), [2.0, 0.0])
    with pytest.warns(errors.OutOfBoundsGuessWarning):
        Configuration(population_members=5, seed=12)().minimize(problem, EndCriteria(2))


@testing.parametrized(
    no_constraint=(Problem(corefuncs.sphere, NoConstraint(), [0.0, 0.0]), "finite bounds"),
    empty=(Problem(corefuncs.sphere, BoundaryConstraint(-1, 1), []), "No variable"),
)
def test_setup_errors(problem: Problem, match: str) -> None:
    optimizer = Configuration(seed=12)()
    with pytest.raises(errors.ConfigurationError, match=match):
        optimizer.minimize(problem, EndCriteria(10))
    assert problem.function_evaluations == 0


def test_mismatching_bounds() -> None:
    problem = Problem(corefuncs.sphere, NonhomogeneousBoundaryConstraint([0, 0, 0], [1, 1, 1]), [0.5, 0.5])
    with pytest.raises(errors.DevolveValueError):
        Configuration(seed=12)().minimize(problem, EndCriteria(10))


def test_tiny_population() -> None:
    with pytest.warns(errors.InefficientSettingsWarning):
        config = Configuration(population_members=1, seed=12)
    problem = _sphere3_problem()
    result = config().minimize(problem, EndCriteria(5, function_epsilon=0.0))
    assert result.cost <= corefuncs.sphere3(np.zeros(2))


def test_callbacks_registration() -> None:
    optimizer = Configuration(population_members=4, seed=12)()
    with pytest.raises(errors.DevolveValueError, match="Unknown callback"):
        optimizer.register_callback("tell", lambda opt: None)  # type: ignore
    generations: tp.List[int] = []
    optimizer.register_callback("generation", lambda opt: generations.append(opt.num_generations))
    optimizer.minimize(_sphere3_problem(), EndCriteria(3, function_epsilon=0.0))
    assert generations == [1, 2, 3]
    optimizer.remove_all_callbacks()
    optimizer.minimize(_sphere3_problem(), EndCriteria(3, function_epsilon=0.0))
    assert generations == [1, 2, 3]


def test_default_configurations_are_reproducible() -> None:
    results = []
    for _ in range(2):
        optimizer = Configuration(population_members=10)()
        recorder = _Recorder(optimizer)
        result = optimizer.minimize(_sphere3_problem(), EndCriteria(5, function_epsilon=0.0))
        results.append((recorder.evaluated, result))
    assert Configuration(population_members=10) == Configuration(population_members=10)
    assert results[0][0] == results[1][0]
    np.testing.assert_array_equal(results[0][1].values, results[1][1].values)


def test_new_run_continues_the_stream() -> None:
    config = Configuration(population_members=10, seed=5)
    optimizer = config()
    optimizer.minimize(_sphere3_problem(), EndCriteria(3, function_epsilon=0.0))
    continued = _Recorder(optimizer)
    optimizer.minimize(_sphere3_problem(), EndCriteria(3, function_epsilon=0.0))
    fresh_optimizer = config()
    fresh = _Recorder(fresh_optimizer)
    fresh_optimizer.minimize(_sphere3_problem(), EndCriteria(3, function_epsilon=0.0))
    assert len(continued.evaluated) == len(fresh.evaluated)
    # same initial guess, then different draws
    assert continued.evaluated[0] == fresh.evaluated[0]
    assert continued.evaluated[1:] != fresh.evaluated[1:]


def test_member_state_is_a_copy() -> None:
    optimizer = conf.SelfAdaptiveDE.with_population_members(6)()
    optimizer.minimize(_sphere3_problem(), EndCriteria(2, function_epsilon=0.0))
    state = optimizer.member_state
    assert state is not None
    state.stepsize_weights[:] = 12.0
    state.crossover_probabilities[:] = 12.0
    internal = optimizer.member_state
    assert internal is not None
    assert np.all(internal.stepsize_weights <= 0.9)
    assert np.all(internal.crossover_probabilities <= 1.0)
