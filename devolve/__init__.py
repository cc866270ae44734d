# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .functions import corefuncs as functions
from .optimization import configuration as optimizers  # presets and their registry
from .optimization import callbacks as callbacks
from .optimization.configuration import Configuration, CrossoverType, Strategy
from .optimization.differentialevolution import DifferentialEvolution, MinimizationResult
from .optimization.endcriteria import EndCriteria, EndType
from .optimization.problem import (
    BoundaryConstraint,
    CompositeConstraint,
    Constraint,
    NoConstraint,
    NonhomogeneousBoundaryConstraint,
    PositiveConstraint,
    Problem,
)


__all__ = [
    "optimizers",
    "callbacks",
    "functions",
    "errors",
    "typing",
    "Configuration",
    "CrossoverType",
    "Strategy",
    "DifferentialEvolution",
    "MinimizationResult",
    "EndCriteria",
    "EndType",
    "Problem",
    "Constraint",
    "NoConstraint",
    "PositiveConstraint",
    "BoundaryConstraint",
    "NonhomogeneousBoundaryConstraint",
    "CompositeConstraint",
]


__version__ = "0.1.0"
