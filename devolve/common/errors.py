# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class DevolveError(Exception):
    """Base class for error raised by devolve"""


class DevolveWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class DevolveRuntimeError(RuntimeError, DevolveError):
    """Runtime error raised by devolve"""


class DevolveTypeError(TypeError, DevolveError):
    """Type error raised by devolve"""


class DevolveValueError(ValueError, DevolveError):
    """Value error raised by devolve"""


class DevolveNotImplementedError(NotImplementedError, DevolveError):
    """Not implemented functionality"""


class ConfigurationError(DevolveValueError):
    """Invalid optimizer configuration, raised when the configuration is built
    or when a run is set up (never during the generation loop)
    """


class EvaluationError(DevolveRuntimeError):
    """To be raised by cost functions which cannot be evaluated at a given point.
    The optimizer assigns the worst possible cost to the point and carries on.
    """


# warnings


class DevolveRuntimeWarning(RuntimeWarning, DevolveWarning):
    """Runtime warning raised by devolve"""


class InefficientSettingsWarning(DevolveRuntimeWarning):
    """Optimization settings are not optimal for the optimizer"""


class BadLossWarning(DevolveRuntimeWarning):
    """Provided cost is unhelpful"""


class OutOfBoundsGuessWarning(DevolveRuntimeWarning):
    """The initial guess of the problem lies outside of the constraint bounds"""
