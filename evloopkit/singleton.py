"""Process-wide lazily created single instances of a class."""

from __future__ import annotations

import atexit
import threading
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T")

_instances: Dict[type, Any] = {}
_lock = threading.Lock()


def _destroy(cls: type) -> None:
    with _lock:
        _instances.pop(cls, None)


def instance(cls: Type[T]) -> T:
    """Return the one shared instance of ``cls``, creating it on first use.

    Creation happens exactly once even when several threads race. Unless
    the class defines a ``no_destroy`` attribute, the instance is dropped
    when the interpreter exits.
    """
    obj = _instances.get(cls)
    if obj is not None:
        return obj
    with _lock:
        obj = _instances.get(cls)
        if obj is None:
            obj = cls()
            _instances[cls] = obj
            if not hasattr(cls, "no_destroy"):
                atexit.register(_destroy, cls)
    return obj