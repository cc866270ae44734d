# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import devolve as dv


def test_quick_start() -> None:
    problem = dv.Problem(dv.functions.sphere3, dv.BoundaryConstraint(-10, 10), [0.0, 0.0])
    optimizer = dv.Configuration(population_members=40, seed=12)()
    end_type, values, cost = optimizer.minimize(problem, dv.EndCriteria(max_iterations=500))
    assert isinstance(end_type, dv.EndType)
    np.testing.assert_allclose(values, [3.0, 3.0], atol=1e-3)
    assert cost == problem.function_value


def test_public_api() -> None:
    assert isinstance(dv.optimizers.registry["DE"], dv.Configuration)
    assert issubclass(dv.errors.ConfigurationError, ValueError)
    config = dv.Configuration().with_strategy("current_to_best_2_diffs").with_crossover_type("binomial")
    assert config.strategy == dv.Strategy.CURRENT_TO_BEST_2_DIFFS
    assert config.crossover_type == dv.CrossoverType.BINOMIAL
    assert isinstance(config(), dv.DifferentialEvolution)
