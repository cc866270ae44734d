# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import sys
import numpy as np
import devolve.common.typing as tp
from devolve.common import errors
from devolve.common import tools as dvtools


_MAX = sys.float_info.max


class Constraint:
    """Box constraint around a point: lower_bound(x) <= x <= upper_bound(x)

    Subclasses only need to implement the bounds, :code:`test` checks them.
    """

    def lower_bound(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def upper_bound(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def test(self, x: np.ndarray) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(np.all(x >= self.lower_bound(x)) and np.all(x <= self.upper_bound(x)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NoConstraint(Constraint):
    def lower_bound(self, x: np.ndarray) -> np.ndarray:
        return np.full(np.shape(x), -_MAX)

    def upper_bound(self, x: np.ndarray) -> np.ndarray:
        return np.full(np.shape(x), _MAX)


class PositiveConstraint(Constraint):
    def lower_bound(self, x: np.ndarray) -> np.ndarray:
        return np.zeros(np.shape(x))

    def upper_bound(self, x: np.ndarray) -> np.ndarray:
        return np.full(np.shape(x), _MAX)


class BoundaryConstraint(Constraint):
    """Same bounds [low, high] for every coordinate"""

    def __init__(self, low: float, high: float) -> None:
        if not low <= high:
            raise errors.DevolveValueError(f"Lower bound ({low}) must not be above upper bound ({high})")
        self.low = float(low)
        self.high = float(high)

    def lower_bound(self, x: np.ndarray) -> np.ndarray:
        return np.full(np.shape(x), self.low)

    def upper_bound(self, x: np.ndarray) -> np.ndarray:
        return np.full(np.shape(x), self.high)

    def __repr__(self) -> str:
        return f"BoundaryConstraint(low={self.low}, high={self.high})"


class NonhomogeneousBoundaryConstraint(Constraint):
    """Specific bounds [low[i], high[i]] for each coordinate i"""

    def __init__(self, low: tp.ArrayLike, high: tp.ArrayLike) -> None:
        self.low = dvtools.as_float_array(low, name="low")
        self.high = dvtools.as_float_array(high, name="high")
        if self.low.shape != self.high.shape:
            raise errors.DevolveValueError(f"Bounds have different sizes: {self.low.size} and {self.high.size}")
        if np.any(self.low > self.high):
            raise errors.DevolveValueError("Lower bounds must not be above upper bounds")

    def _check_size(self, x: np.ndarray) -> None:
        if np.size(x) != self.low.size:
            raise errors.DevolveValueError(f"Got a point of size {np.size(x)} for bounds of size {self.low.size}")

    def lower_bound(self, x: np.ndarray) -> np.ndarray:
        self._check_size(x)
        return self.low.copy()

    def upper_bound(self, x: np.ndarray) -> np.ndarray:
        self._check_size(x)
        return self.high.copy()

    def __repr__(self) -> str:
        return f"NonhomogeneousBoundaryConstraint(low={self.low.tolist()}, high={self.high.tolist()})"


class CompositeConstraint(Constraint):
    """Intersection of two constraints: tightest bound of the two on each coordinate"""

    def __init__(self, first: Constraint, second: Constraint) -> None:
        self.first = first
        self.second = second

    def lower_bound(self, x: np.ndarray) -> np.ndarray:
        return np.maximum(self.first.lower_bound(x), self.second.lower_bound(x))

    def upper_bound(self, x: np.ndarray) -> np.ndarray:
        return np.minimum(self.first.upper_bound(x), self.second.upper_bound(x))

    def test(self, x: np.ndarray) -> bool:
        return self.first.test(x) and self.second.test(x)

    def __repr__(self) -> str:
        return f"CompositeConstraint({self.first!r}, {self.second!r})"


class Problem:
    """Minimization problem: a cost function, a constraint, and a current point.

    The current point is the initial guess of an optimization, and the optimizer
    writes the best point it found (and its cost) back into the problem.

    Parameters
    ----------
    cost_function: callable
        function taking a 1d numpy array and returning a float. It may raise
        (eg: :code:`errors.EvaluationError`) at points where it cannot be evaluated.
    constraint: Constraint
        the box constraint
    initial_value: array-like
        initial guess, which also sets the dimension of the problem
    """

    def __init__(
        self, cost_function: tp.CostFunction, constraint: tp.ConstraintLike, initial_value: tp.ArrayLike
    ) -> None:
        if not callable(cost_function):
            raise errors.DevolveTypeError(f"Cost function must be callable, got {cost_function!r}")
        self.cost_function = cost_function
        self.constraint = constraint
        self._current_value = dvtools.as_float_array(initial_value, name="initial_value")
        self._function_value: tp.Optional[float] = None
        self._function_evaluations = 0

    @property
    def current_value(self) -> np.ndarray:
        return self._current_value.copy()

    @property
    def function_value(self) -> tp.Optional[float]:
        return self._function_value

    @property
    def function_evaluations(self) -> int:
        return self._function_evaluations

    @property
    def dimension(self) -> int:
        return self._current_value.size

    def value(self, x: np.ndarray) -> tp.Loss:
        """Evaluates the cost function (and counts the evaluation)"""
        self._function_evaluations += 1
        return float(self.cost_function(np.array(x, dtype=float, copy=True)))

    def set_current_value(self, x: tp.ArrayLike) -> None:
        self._current_value = dvtools.as_float_array(x, name="current_value")

    def set_function_value(self, value: float) -> None:
        self._function_value = float(value)

    def reset(self) -> None:
        """Resets the evaluation counter and the function value"""
        self._function_evaluations = 0
        self._function_value = None

    def __repr__(self) -> str:
        return f"Problem(dimension={self.dimension}, constraint={self.constraint!r})"
