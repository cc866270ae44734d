# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
from .rng import UniformRng


def reflect(
    values: np.ndarray, mirror: np.ndarray, lower: np.ndarray, upper: np.ndarray, rng: UniformRng
) -> np.ndarray:
    """Stochastic reflection of out-of-bounds coordinates toward a mirror point.

    A coordinate above its upper bound u is replaced by u + r * (m - u), and
    a coordinate below its lower bound l by l + r * (m - l), where m is the
    corresponding coordinate of the mirror and r a fresh uniform draw. This is
    not a clamp: the repaired value lands anywhere between the violated bound and
    the mirror, so it is in the box whenever the mirror is.

    Parameters
    ----------
    values: np.ndarray
        (num_members, dimension) array of points to repair
    mirror: np.ndarray
        (num_members, dimension) array of mirror points, one per member
    lower: np.ndarray
        (dimension,) lower bounds
    upper: np.ndarray
        (dimension,) upper bounds
    rng: UniformRng
        source of the draws. Violations are visited member by member,
        then coordinate by coordinate, the upper bound being checked first,
        with one draw per repair.

    Returns
    -------
    np.ndarray
        a repaired copy of the values
    """
    repaired = np.array(values, dtype=float, copy=True)
    outside = np.logical_or(repaired > upper, repaired < lower)
    for i, j in zip(*np.nonzero(outside)):  # C order: member-major
        if repaired[i, j] > upper[j]:
            repaired[i, j] = upper[j] + rng.next_real() * (mirror[i, j] - upper[j])
        if repaired[i, j] < lower[j]:
            repaired[i, j] = lower[j] + rng.next_real() * (mirror[i, j] - lower[j])
    return repaired
