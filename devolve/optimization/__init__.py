# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .configuration import Configuration  # to build optimizers
from .configuration import registry  # named configurations
from .differentialevolution import DifferentialEvolution
from .endcriteria import EndCriteria
from .problem import Problem
