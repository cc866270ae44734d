# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from . import decorators
from . import errors


def test_registry() -> None:
    functions: decorators.Registry[tp.Callable[[], int]] = decorators.Registry()
    other: decorators.Registry[tp.Callable[[], int]] = decorators.Registry()

    @functions.register
    def dummy() -> int:
        return 12

    np.testing.assert_equal(dummy(), 12)
    np.testing.assert_array_equal(list(functions.keys()), ["dummy"])
    np.testing.assert_array_equal(list(other.keys()), [])
    functions.unregister("dummy")
    functions.unregister("other_dummy_that_does_not_exist")
    np.testing.assert_array_equal(list(functions.keys()), [])


def test_info_registry() -> None:
    functions: decorators.Registry[tp.Callable[[], int]] = decorators.Registry()

    @functions.register_with_info(optimum=10)
    def dummy_info() -> int:
        return 10

    np.testing.assert_equal(dummy_info(), 10)
    np.testing.assert_equal(functions.get_info("dummy_info"), {"optimum": 10})
    with pytest.raises(errors.DevolveValueError):
        functions.get_info("no_dummy")


def test_registry_errors() -> None:
    functions: decorators.Registry[tp.Any] = decorators.Registry()

    @functions.register
    def dummy() -> int:
        return 12

    with pytest.raises(errors.DevolveRuntimeError, match="name collision"):
        functions.register(dummy)
    with pytest.raises(KeyError, match="available"):
        functions["blublu"]  # pylint: disable=pointless-statement
