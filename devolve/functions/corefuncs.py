# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Classical cost functions for testing optimizers.
Each function is registered with the location of its global minimum
(for a given dimension) and its minimal value.
"""

from math import exp, sqrt
import numpy as np
import devolve.common.typing as tp
from devolve.common import errors
from devolve.common.decorators import Registry


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


def optimum(name: str, dimension: int) -> np.ndarray:
    """Location of the global minimum of a registered function"""
    return np.full(dimension, registry.get_info(name)["argmin"], dtype=float)


@registry.register_with_info(argmin=0.0, minimum=0.0)
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    x = np.asarray(x, dtype=float)
    assert x.ndim == 1
    return float(x.dot(x))


@registry.register_with_info(argmin=3.0, minimum=0.0)
def sphere3(x: np.ndarray) -> float:
    """Sphere translated to (3, 3, ...)"""
    return sphere(np.asarray(x) - 3.0)


@registry.register_with_info(argmin=0.0, minimum=0.0)
def ellipsoid(x: np.ndarray) -> float:
    """Ill conditioned sphere, weights going from 1 to 10^6 along the coordinates"""
    x = np.asarray(x, dtype=float)
    weights = 10 ** np.linspace(0, 6, x.size)
    return float(weights.dot(x**2))


@registry.register_with_info(argmin=0.0, minimum=0.0)
def cigar(x: np.ndarray) -> float:
    """Ill conditioned: all coordinates but the first are heavily weighted"""
    x = np.asarray(x, dtype=float)
    return float(x[0]) ** 2 + 1000000.0 * sphere(x[1:])


@registry.register_with_info(argmin=0.0, minimum=0.0)
def rastrigin(x: np.ndarray) -> float:
    """Classical multimodal function, with a grid of local minima"""
    x = np.asarray(x, dtype=float)
    cosi = float(np.sum(np.cos(2 * np.pi * x)))
    return float(10 * (len(x) - cosi) + sphere(x))


@registry.register_with_info(argmin=1.0, minimum=0.0)
def rosenbrock(x: np.ndarray) -> float:
    """Banana-shaped valley, easy to find but hard to follow"""
    x = np.asarray(x, dtype=float)
    x_m_1 = x[:-1] - 1
    x_diff = x[:-1] ** 2 - x[1:]
    return float(100 * x_diff.dot(x_diff) + x_m_1.dot(x_m_1))


@registry.register_with_info(argmin=0.0, minimum=0.0)
def ackley(x: np.ndarray) -> float:
    """Multimodal function with a nearly flat outer region"""
    x = np.asarray(x, dtype=float)
    dim = x.size
    sum_cos = float(np.sum(np.cos(2 * np.pi * x)))
    return -20.0 * exp(-0.2 * sqrt(sphere(x) / dim)) - exp(sum_cos / dim) + 20 + exp(1)


@registry.register_with_info(argmin=0.0, minimum=0.0)
def griewank(x: np.ndarray) -> float:
    """Multimodal function, with many widespread regularly distributed local minima"""
    x = np.asarray(x, dtype=float)
    part1 = sphere(x)
    part2 = np.prod(np.cos(x / np.sqrt(1 + np.arange(len(x)))))
    return 1 + (float(part1) / 4000.0) - float(part2)


class FailingFunction:
    """Wraps a cost function so that it raises an EvaluationError
    whenever a coordinate exceeds a threshold.

    Parameters
    ----------
    func: callable
        the cost function to wrap
    threshold: float
        evaluations fail strictly above this value
    coordinate: int
        index of the checked coordinate
    """

    def __init__(self, func: tp.Callable[[np.ndarray], float], threshold: float, coordinate: int = 0) -> None:
        self.func = func
        self.threshold = threshold
        self.coordinate = coordinate
        self.num_failures = 0

    def __call__(self, x: np.ndarray) -> float:
        if x[self.coordinate] > self.threshold:
            self.num_failures += 1
            raise errors.EvaluationError(f"Cannot evaluate at coordinate {self.coordinate} = {x[self.coordinate]}")
        return self.func(x)
