from __future__ import annotations
from typing import Any, Callable, Dict, List, Tuple

from .utils import call_flexible, maybe_await

class HookRegistry:
    """Pre/post lifecycle callbacks keyed by operation name.

    Pre hooks are called as ``fn(operation)``, post hooks as
    ``fn(operation, result)``; callbacks may declare fewer parameters and may
    be sync or async. Callbacks run in registration order and their errors
    propagate to the awaiting caller.
    """

    def __init__(self):
        self._before: Dict[str, List[Callable[..., Any]]] = {}
        self._after: Dict[str, List[Callable[..., Any]]] = {}

    @staticmethod
    def _check(fn: Any) -> None:
        if not callable(fn):
            raise TypeError(f"Hook callback must be callable, got {fn!r}")

    def register_before(self, name: str, fn: Callable[..., Any]) -> None:
        self._check(fn)
        self._before.setdefault(name, []).append(fn)

    def register_after(self, name: str, fn: Callable[..., Any]) -> None:
        self._check(fn)
        self._after.setdefault(name, []).append(fn)

    def before(self, name: str) -> Tuple[Callable[..., Any], ...]:
        return tuple(self._before.get(name, ()))

    def after(self, name: str) -> Tuple[Callable[..., Any], ...]:
        return tuple(self._after.get(name, ()))

    def names(self) -> List[str]:
        return sorted(set(self._before) | set(self._after))

    def merged(self, other: 'HookRegistry') -> 'HookRegistry':
        """New registry running this registry's callbacks, then ``other``'s."""
        out = HookRegistry()
        for src in (self, other):
            for name, cbs in src._before.items():
                out._before.setdefault(name, []).extend(cbs)
            for name, cbs in src._after.items():
                out._after.setdefault(name, []).extend(cbs)
        return out

    async def run_before(self, name: str, operation: Any) -> None:
        for cb in self.before(name):
            await maybe_await(call_flexible(cb, operation))

    async def run_after(self, name: str, operation: Any, result: Any) -> None:
        for cb in self.after(name):
            await maybe_await(call_flexible(cb, operation, result))

def register_before(schema: Any, hook_name: str, fn: Callable[..., Any]) -> None:
    schema.hooks.register_before(hook_name, fn)

def register_after(schema: Any, hook_name: str, fn: Callable[..., Any]) -> None:
    schema.hooks.register_after(hook_name, fn)
