# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import functools
from . import errors


X = tp.TypeVar("X")


class Registry(tp.MutableMapping[str, X]):
    """Name to object mapping, used for configuration presets and test functions.
    Objects can be registered as decorators, with optional information attached
    (eg: the known optimum of a test function).
    """

    def __init__(self) -> None:
        super().__init__()
        self.data: tp.Dict[str, X] = {}
        self._information: tp.Dict[str, tp.Dict[str, tp.Any]] = {}

    def register(self, obj: X, info: tp.Optional[tp.Dict[str, tp.Any]] = None) -> X:
        """Registers the object under its __name__ (or its class name for instances)"""
        name = getattr(obj, "__name__", obj.__class__.__name__)
        self.register_name(name, obj, info)
        return obj

    def register_name(self, name: str, obj: X, info: tp.Optional[tp.Dict[str, tp.Any]] = None) -> None:
        if name in self.data:
            raise errors.DevolveRuntimeError(f'Encountered a name collision "{name}"')
        self.data[name] = obj
        if info is not None:
            self._information[name] = dict(info)

    def register_with_info(self, **info: tp.Any) -> tp.Callable[[X], X]:
        """Decorator registering an object along with information about it"""
        return functools.partial(self.register, info=info)  # type: ignore

    def unregister(self, name: str) -> None:
        """Removes a registered object if present (no-op otherwise)"""
        self.data.pop(name, None)
        self._information.pop(name, None)

    def get_info(self, name: str) -> tp.Dict[str, tp.Any]:
        if name not in self.data:
            raise errors.DevolveValueError(f'"{name}" is not registered.')
        return self._information.setdefault(name, {})

    def __getitem__(self, key: str) -> X:
        try:
            return self.data[key]
        except KeyError as e:
            raise KeyError(f'"{key}" is not registered, available: {sorted(self.data)}') from e

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
