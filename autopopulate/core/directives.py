"""Autopopulate directive values.

A field's ``autopopulate`` option is normalized into one of three tags:

- :class:`Skip`: nothing to resolve (falsy or unsupported values).
- :class:`StaticOptions`: a mapping merged over the built populate options
  (``True`` is an empty mapping).
- :class:`Dynamic`: a callable producing any of the above.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .utils import call_flexible

@dataclass(frozen=True)
class Skip:
    pass

@dataclass(frozen=True)
class StaticOptions:
    values: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class Dynamic:
    fn: Callable[..., Any]

Directive = Union[Skip, StaticOptions, Dynamic]

SKIP = Skip()

def has_directive(value: Any) -> bool:
    """Whether a raw option value marks a field for autopopulation at all."""
    if isinstance(value, Mapping) or callable(value):
        return True
    return bool(value)

def classify(value: Any) -> Directive:
    if isinstance(value, (Skip, StaticOptions, Dynamic)):
        return value
    if isinstance(value, Mapping):
        return StaticOptions(dict(value))
    if callable(value):
        return Dynamic(value)
    if value is True:
        return StaticOptions()
    return SKIP

def resolve_directive(value: Any, options: Dict[str, Any], operation: Any = None) -> Optional[Dict[str, Any]]:
    """Turn a raw directive value into the populate options for one path.

    ``options`` is the built default directive (``path``, ``model``/``ref``
    or ``ref_path``, and nested ``options`` with ``_depth``/``max_depth``).
    Callables receive ``(options, operation)`` and their return value is
    resolved again. Returns None when nothing should be populated.
    """
    directive = classify(value)
    if isinstance(directive, Dynamic):
        return resolve_directive(call_flexible(directive.fn, options, operation), options, operation)
    if isinstance(directive, Skip):
        return None
    overrides = dict(directive.values)
    max_depth = overrides.pop('max_depth', None)
    if max_depth is not None:
        nested = dict(options.get('options') or {})
        nested['max_depth'] = max_depth
        options = {**options, 'options': nested}
    return {**options, **overrides}
