# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
If you know better practices, feel free to submit it ;)
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Generic as Generic
from typing import Type as Type
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple
from typing import MutableMapping as MutableMapping

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import TYPE_CHECKING as TYPE_CHECKING
from typing import Callable as Callable
from typing import Hashable as Hashable
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
Loss = float
CostFunction = Callable[[_np.ndarray], Loss]


# %% Protocol definitions for the collaborators of the optimizer


class ConstraintLike(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def test(self, x: _np.ndarray) -> bool:
        ...

    def lower_bound(self, x: _np.ndarray) -> _np.ndarray:
        ...

    def upper_bound(self, x: _np.ndarray) -> _np.ndarray:
        ...


E = TypeVar("E")


class TerminationPolicy(Protocol[E]):
    """Decides when the generation loop stops, the optimizer holds no threshold logic itself"""

    # pylint: disable=pointless-statement, unused-argument

    def check_max_iterations(self, iteration: int) -> Optional[E]:
        ...

    def check_stationary_function_value(
        self, fx_old: float, fx_new: float, stationary_iterations: int
    ) -> Tuple[Optional[E], int]:
        ...
