from __future__ import annotations
import copy
import inspect
import uuid
from typing import Any, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Tuple

def new_id() -> str:
    return uuid.uuid4().hex

def ensure_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]

def split_path(path: str) -> List[str]:
    return [p for p in str(path).split('.') if p]

def get_path(data: Any, path: str) -> Any:
    """Read a dotted path, mapping across arrays (``tags.item`` -> list of items).

    Missing keys yield None.
    """
    segments = split_path(path)
    cur = data
    for i, seg in enumerate(segments):
        if isinstance(cur, list):
            rest = '.'.join(segments[i:])
            return [get_path(item, rest) for item in cur]
        if not isinstance(cur, Mapping):
            return None
        try:
            cur = cur[seg]
        except KeyError:
            return None
    return cur

def set_path(data: MutableMapping[str, Any], path: str, value: Any) -> None:
    segments = split_path(path)
    cur: Any = data
    for seg in segments[:-1]:
        nxt = cur.get(seg) if isinstance(cur, Mapping) else None
        if not isinstance(nxt, MutableMapping):
            nxt = {}
            cur[seg] = nxt
        cur = nxt
    cur[segments[-1]] = value

def collect_holders(data: Any, path: str) -> List[Tuple[MutableMapping[str, Any], str]]:
    """Return ``(container, key)`` pairs holding the values addressed by ``path``.

    Arrays along the way are expanded, so ``tags.item`` yields one pair per
    array element.
    """
    segments = split_path(path)
    out: List[Tuple[MutableMapping[str, Any], str]] = []
    if not segments:
        return out

    def _walk(node: Any, idx: int) -> None:
        if isinstance(node, list):
            for item in node:
                _walk(item, idx)
            return
        if not isinstance(node, MutableMapping):
            return
        seg = segments[idx]
        if idx == len(segments) - 1:
            out.append((node, seg))
            return
        try:
            child = node[seg]
        except KeyError:
            return
        if child is not None:
            _walk(child, idx + 1)

    _walk(data, 0)
    return out

def ref_id(value: Any) -> Any:
    """Reference id of a raw id, a populated document or a lean populated dict."""
    if isinstance(value, Mapping):
        return value.get('_id')
    return value

def unique(values: Iterable[Any]) -> List[Any]:
    seen: set = set()
    out: List[Any] = []
    for v in values:
        if v is None or v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out

def to_storage(value: Any) -> Any:
    """Plain JSON-friendly copy where populated documents collapse back to their ids."""
    if getattr(value, '__autopopulate_document__', False):
        return ref_id(value)
    if isinstance(value, Mapping):
        return {str(k): to_storage(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_storage(v) for v in value]
    return copy.deepcopy(value)

def parse_projection(select: Any) -> Tuple[set, set]:
    """Split a ``select`` value (``'name -bio'`` or a list) into (include, exclude) sets."""
    if select is None:
        return set(), set()
    if isinstance(select, str):
        tokens = select.replace(',', ' ').split()
    elif isinstance(select, Mapping):
        tokens = [k if v else f"-{k}" for k, v in select.items()]
    else:
        tokens = [str(t) for t in select]
    include = {t for t in tokens if not t.startswith('-')}
    exclude = {t[1:] for t in tokens if t.startswith('-')}
    return include, exclude

def apply_projection(data: Mapping[str, Any], select: Any, *, always: Sequence[str] = ('_id',)) -> dict:
    include, exclude = parse_projection(select)
    if include:
        keep = include | set(always)
        return {k: v for k, v in data.items() if k in keep}
    if exclude:
        return {k: v for k, v in data.items() if k not in exclude or k in always}
    return dict(data)

def apply_update(data: Mapping[str, Any], update: Mapping[str, Any] | None) -> dict:
    """Return a copy of ``data`` with ``update`` applied.

    Supports ``{'set': {...}}``, ``{'unset': [...]}``, ``{'push': {...}}``;
    any other mapping is treated as fields to set.
    """
    out = copy.deepcopy(dict(data))
    update = dict(update or {})
    if not (set(update) & {'set', 'unset', 'push'}):
        update = {'set': update}
    for path, value in (update.get('set') or {}).items():
        set_path(out, path, copy.deepcopy(value))
    for path in ensure_list(update.get('unset')):
        out.pop(path, None)
    for path, value in (update.get('push') or {}).items():
        current = get_path(out, path)
        current = list(current) if isinstance(current, list) else []
        current.append(copy.deepcopy(value))
        set_path(out, path, current)
    return out

def _arity(cb: Any) -> Optional[int]:
    """Number of positional parameters ``cb`` accepts; None when it takes ``*args``."""
    try:
        sig = inspect.signature(cb)
    except (TypeError, ValueError):
        return None
    count = 0
    for p in sig.parameters.values():
        if p.kind == p.VAR_POSITIONAL:
            return None
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            count += 1
    return count

def call_flexible(cb: Any, *args: Any) -> Any:
    """Call ``cb`` with as many leading ``args`` as its signature accepts."""
    n = _arity(cb)
    if n is None:
        return cb(*args)
    return cb(*args[:n])

async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
