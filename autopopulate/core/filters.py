from __future__ import annotations
from typing import Any, Callable, Dict, Mapping

def _as_list(v: Any) -> list:
    return list(v) if isinstance(v, (list, tuple, set)) else [v]

def _eq(value: Any, v: Any) -> bool:
    if isinstance(value, list) and not isinstance(v, list):
        return v in value
    return value == v

def _in(value: Any, v: Any) -> bool:
    options = _as_list(v)
    if isinstance(value, list):
        return any(item in options for item in value)
    return value in options

# Global operator registry (extensible)
OPERATOR_REGISTRY: Dict[str, Callable[[Any, Any], bool]] = {
    'eq': _eq,
    'ne': lambda value, v: not _eq(value, v),
    'lt': lambda value, v: value is not None and value < v,
    'lte': lambda value, v: value is not None and value <= v,
    'gt': lambda value, v: value is not None and value > v,
    'gte': lambda value, v: value is not None and value >= v,
    'in': _in,
    'not_in': lambda value, v: not _in(value, v),
    'exists': lambda value, v: (value is not None) == bool(v),
}

def is_operator_map(cond: Any) -> bool:
    """True when ``cond`` is an ``{op: value}`` mapping rather than a literal to compare."""
    return isinstance(cond, Mapping) and any(k in OPERATOR_REGISTRY for k in cond)

def matches(data: Any, where: Mapping[str, Any] | None) -> bool:
    """Evaluate a simple where dict ``{path: value | {op: value}}`` against a document."""
    from .utils import get_path  # local import to avoid cycles
    for path, cond in (where or {}).items():
        value = get_path(data, path)
        if not is_operator_map(cond):
            if not _eq(value, cond):
                return False
            continue
        for op_name, v in cond.items():
            op_fn = OPERATOR_REGISTRY.get(op_name)
            if not op_fn:
                raise ValueError(f"Unknown where operator: {op_name}")
            if not op_fn(value, v):
                return False
    return True

def register_operator(name: str, fn: Callable[[Any, Any], bool]):  # pragma: no cover - simple
    OPERATOR_REGISTRY[name] = fn
