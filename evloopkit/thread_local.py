"""Per-thread lazily created values."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Generic, Optional, Type, TypeVar

T = TypeVar("T")


class ThreadLocal(Generic[T]):
    """Holds one value per thread, created by ``factory`` on first access."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._local = threading.local()

    def value(self) -> T:
        """Return the calling thread's value, creating it if needed."""
        try:
            return self._local.value
        except AttributeError:
            obj = self._factory()
            self._local.value = obj
            return obj


_per_thread = threading.local()


def _registry() -> Dict[type, object]:
    registry = getattr(_per_thread, "instances", None)
    if registry is None:
        registry = {}
        _per_thread.instances = registry
    return registry


def thread_local_instance(cls: Type[T]) -> T:
    """Return the calling thread's single instance of ``cls``, creating it once."""
    registry = _registry()
    obj = registry.get(cls)
    if obj is None:
        obj = cls()
        registry[cls] = obj
    return obj  # type: ignore[return-value]


def thread_local_pointer(cls: Type[T]) -> Optional[T]:
    """Return the calling thread's instance of ``cls``, or None if not yet created."""
    return _registry().get(cls)  # type: ignore[return-value]