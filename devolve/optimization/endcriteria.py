# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import enum
import devolve.common.typing as tp
from devolve.common import errors


class EndType(enum.Enum):
    """Reason why an optimization stopped"""

    NONE = "none"
    MAX_ITERATIONS = "max_iterations"
    STATIONARY_POINT = "stationary_point"
    STATIONARY_FUNCTION_VALUE = "stationary_function_value"
    STATIONARY_FUNCTION_ACCURACY = "stationary_function_accuracy"
    ZERO_GRADIENT_NORM = "zero_gradient_norm"

    @property
    def succeeded(self) -> bool:
        """Whether the optimization converged (as opposed to running out of iterations)"""
        return self in (
            EndType.STATIONARY_POINT,
            EndType.STATIONARY_FUNCTION_VALUE,
            EndType.STATIONARY_FUNCTION_ACCURACY,
        )


class EndCriteria:
    """Termination policy of an optimization.

    Each check returns the reason for stopping, or None if the optimization
    should go on. Checks relying on a number of consecutive stationary iterations
    take the current count and return the updated one along with the decision,
    the count being owned by the caller.

    Parameters
    ----------
    max_iterations: int
        maximum number of iterations (generations)
    max_stationary_state_iterations: int or None
        number of consecutive stationary iterations tolerated before stopping,
        defaults to min(max_iterations // 2, 100) (and at least 2)
    root_epsilon: float
        tolerance on the move of the point for stationary point detection
    function_epsilon: float
        tolerance on the change of the function value for stationary value detection
    gradient_norm_epsilon: float or None
        tolerance on the gradient norm, defaults to function_epsilon
    """

    def __init__(
        self,
        max_iterations: int,
        max_stationary_state_iterations: tp.Optional[int] = None,
        root_epsilon: float = 1e-8,
        function_epsilon: float = 1e-9,
        gradient_norm_epsilon: tp.Optional[float] = None,
    ) -> None:
        if max_iterations <= 0:
            raise errors.DevolveValueError(f"max_iterations ({max_iterations}) must be positive")
        if max_stationary_state_iterations is None:
            max_stationary_state_iterations = max(2, min(max_iterations // 2, 100))
        if max_stationary_state_iterations <= 1:
            raise errors.DevolveValueError(
                f"max_stationary_state_iterations ({max_stationary_state_iterations}) must be greater than one"
            )
        if gradient_norm_epsilon is None:
            gradient_norm_epsilon = function_epsilon
        if min(root_epsilon, function_epsilon, gradient_norm_epsilon) < 0:
            raise errors.DevolveValueError("Tolerances must be non-negative")
        self.max_iterations = int(max_iterations)
        self.max_stationary_state_iterations = int(max_stationary_state_iterations)
        self.root_epsilon = root_epsilon
        self.function_epsilon = function_epsilon
        self.gradient_norm_epsilon = gradient_norm_epsilon

    def check_max_iterations(self, iteration: int) -> tp.Optional[EndType]:
        if iteration < self.max_iterations:
            return None
        return EndType.MAX_ITERATIONS

    def _check_stationary(
        self, change: float, epsilon: float, stationary_iterations: int, end_type: EndType
    ) -> tp.Tuple[tp.Optional[EndType], int]:
        if change >= epsilon:
            return None, 0
        stationary_iterations += 1
        if stationary_iterations <= self.max_stationary_state_iterations:
            return None, stationary_iterations
        return end_type, stationary_iterations

    def check_stationary_point(
        self, x_old: float, x_new: float, stationary_iterations: int
    ) -> tp.Tuple[tp.Optional[EndType], int]:
        return self._check_stationary(
            abs(x_new - x_old), self.root_epsilon, stationary_iterations, EndType.STATIONARY_POINT
        )

    def check_stationary_function_value(
        self, fx_old: float, fx_new: float, stationary_iterations: int
    ) -> tp.Tuple[tp.Optional[EndType], int]:
        return self._check_stationary(
            abs(fx_new - fx_old), self.function_epsilon, stationary_iterations, EndType.STATIONARY_FUNCTION_VALUE
        )

    def check_stationary_function_accuracy(self, f: float, positive_optimization: bool) -> tp.Optional[EndType]:
        """Stops when the (known to be positive) cost is below the function tolerance"""
        if not positive_optimization or f >= self.function_epsilon:
            return None
        return EndType.STATIONARY_FUNCTION_ACCURACY

    def check_zero_gradient_norm(self, gradient_norm: float) -> tp.Optional[EndType]:
        if gradient_norm >= self.gradient_norm_epsilon:
            return None
        return EndType.ZERO_GRADIENT_NORM

    def __repr__(self) -> str:
        return (
            f"EndCriteria(max_iterations={self.max_iterations}, "
            f"max_stationary_state_iterations={self.max_stationary_state_iterations}, "
            f"function_epsilon={self.function_epsilon})"
        )
