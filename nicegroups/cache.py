"""Helper function(s) for caching results

Copyright 2023 The nicegroups Authors and Infleqtion Inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

Value = TypeVar("Value")

# guards the creation of per-instance locks
_LOCK_FACTORY_LOCK = threading.Lock()


class cached_once(Generic[Value]):
    """Decorator for a property whose value is computed at most once per instance.

    Like functools.cached_property, the computed value is stored in the instance dictionary, after
    which it shadows this (non-data) descriptor.  Unlike functools.cached_property, concurrent first
    accesses are serialized by a lock that is private to the instance and attribute: one thread
    computes the value, and the others wait for it.  Nothing is stored until the computation
    finishes, so a partially computed value is never observable, and a stored value is never
    recomputed.  If the computation raises an exception, nothing is stored.
    """

    def __init__(self, function: Callable[[Any], Value]) -> None:
        self.function = function
        self.name = function.__name__
        functools.update_wrapper(self, function)  # type:ignore[arg-type]

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        cache = instance.__dict__
        if self.name in cache:
            return cache[self.name]
        with self._get_lock(instance):
            if self.name not in cache:
                cache[self.name] = self.function(instance)
            return cache[self.name]

    def _get_lock(self, instance: Any) -> threading.Lock:
        """Retrieve the lock that guards this attribute of an instance."""
        with _LOCK_FACTORY_LOCK:
            return instance.__dict__.setdefault(f"_{self.name}_lock", threading.Lock())


def is_cached(instance: object, name: str) -> bool:
    """Has the value of a cached_once property already been computed for this instance?"""
    return name in instance.__dict__
