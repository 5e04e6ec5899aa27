from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from .directives import resolve_directive
from .walker import DiscoveredPath

_logger = logging.getLogger("autopopulate")

PathFilter = Callable[[Dict[str, Any]], bool]

class OperationContext(Protocol):
    """What the planner needs from an in-flight read or write."""

    def get_options(self) -> Dict[str, Any]: ...

    def is_lightweight_mode(self) -> bool: ...

    def lightweight_options(self) -> Dict[str, Any]: ...

    def already_resolved(self, path: str) -> Any: ...

    def current_value(self, path: str) -> Any: ...

def is_enabled(operation: OperationContext) -> bool:
    """False when the operation opted out, or runs lean without ``lean({'autopopulate': True})``."""
    if operation.is_lightweight_mode() and not (operation.lightweight_options() or {}).get('autopopulate'):
        return False
    return (operation.get_options() or {}).get('autopopulate') is not False

def depth_limits(options: Mapping[str, Any]) -> Tuple[int, Optional[int]]:
    """Return ``(current_depth, max_depth)`` for an operation's options.

    ``autopopulate={'max_depth': n}`` on the operation overrides a plain
    ``max_depth`` option.
    """
    max_depth = options.get('max_depth')
    ap = options.get('autopopulate')
    if isinstance(ap, Mapping) and ap.get('max_depth'):
        max_depth = ap['max_depth']
    depth = options.get('_depth')
    return (0 if depth is None else depth), max_depth

def ceiling_reached(depth: int, max_depth: Optional[int]) -> bool:
    # max_depth of 0 (or unset) means no ceiling
    return bool(max_depth) and max_depth > 0 and depth >= max_depth

def plan(
    operation: OperationContext,
    paths: Sequence[DiscoveredPath],
    path_filter: Optional[PathFilter] = None,
) -> List[Dict[str, Any]]:
    """Build the populate directives an operation should apply.

    Args:
        operation: The in-flight query or document.
        paths: Discovered paths of the operation's schema.
        path_filter: Optional ``fn(default_options) -> bool``; paths it
            rejects are skipped.

    Returns:
        One directive per path that resolves to something, in path order.
        Empty when autopopulation is disabled for the operation or the depth
        ceiling is reached.
    """
    if not is_enabled(operation):
        _logger.debug("autopopulate: disabled for %r", operation)
        return []
    options = operation.get_options() or {}
    depth, max_depth = depth_limits(options)
    if ceiling_reached(depth, max_depth):
        _logger.debug("autopopulate: max depth %s reached at depth %s", max_depth, depth)
        return []

    directives: List[Dict[str, Any]] = []
    for discovered in paths:
        base = discovered.default_options()
        if path_filter is not None and not path_filter(base):
            continue
        nested: Dict[str, Any] = {'_depth': depth + 1}
        if max_depth:
            nested['max_depth'] = max_depth
        base['options'].update(nested)
        directive = resolve_directive(discovered.autopopulate, base, operation)
        if directive:
            directives.append(directive)
    return directives
