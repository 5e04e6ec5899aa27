"""Reference resolution.

Replaces reference ids stored at a path with the referenced documents. Every
resolution goes through the target model's own ``find`` so that its hooks
(and therefore nested autopopulation, bounded by ``_depth``/``max_depth`` in
the directive's ``options``) apply.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, MutableMapping, Optional, Tuple

from .core.fields import FieldDef
from .core.utils import collect_holders, ensure_list, get_path, parse_projection, ref_id, split_path, unique
from .query import normalize_populate

if TYPE_CHECKING:  # pragma: no cover
    from .model import Model

Holder = Tuple[MutableMapping[str, Any], str]


async def populate_documents(model: 'Model', documents: List[Any], directives: Any, *, lean: Any = False) -> None:
    """Apply each directive to ``documents`` in turn.

    ``documents`` may be :class:`~autopopulate.document.Document` instances
    or plain dicts (lean reads). Errors from the store propagate.
    """
    if not documents:
        return
    for directive in normalize_populate(directives):
        fdef = model.schema.path(directive['path'])
        if fdef is not None and fdef.kind == 'computed':
            await _populate_computed(model, documents, directive, fdef, lean)
        else:
            await _populate_path(model, documents, directive, fdef, lean)


def _field_ref(fdef: Optional[FieldDef], key: str) -> Any:
    if fdef is None:
        return None
    value = fdef.options.get(key)
    if value is None and fdef.element is not None:
        value = fdef.element.options.get(key)
    return value


def _target_names(model: 'Model', root: Any, holders: List[Holder], directive: Mapping[str, Any], fdef: Optional[FieldDef]) -> List[Any]:
    """Target model name for each holder of one root document."""
    static = directive.get('model') or _field_ref(fdef, 'ref')
    if static is not None:
        name = getattr(static, 'name', static)
        return [name] * len(holders)
    ref_path = directive.get('ref_path') or _field_ref(fdef, 'ref_path')
    if ref_path is None:
        raise ValueError(f"Cannot populate {directive['path']!r} on {model.name}: no model to resolve against")
    return [_selector(root, holder, directive['path'], ref_path) for holder, _ in holders]


def _selector(root: Any, holder: Any, path: str, ref_path: str) -> Any:
    """Model name for one holder; a selector beside the field is read from the holder itself."""
    parent = split_path(path)[:-1]
    segments = split_path(ref_path)
    if parent and segments[:len(parent)] == parent:
        selector = get_path(holder, '.'.join(segments[len(parent):]))
    else:
        selector = get_path(root, ref_path)
    if isinstance(selector, list):
        raise ValueError(f"Selector {ref_path!r} for {path!r} holds several model names: {selector!r}")
    return selector


def _child_query(target: 'Model', where: Dict[str, Any], directive: Mapping[str, Any], lean: Any):
    query = target.find({**dict(directive.get('match') or {}), **where}, options=dict(directive.get('options') or {}))
    if directive.get('select') is not None:
        query.select(directive['select'])
    for nested in ensure_list(directive.get('populate')):
        query.populate(nested)
    if lean:
        query.lean(lean)
    return query


async def _populate_path(model: 'Model', documents: List[Any], directive: Mapping[str, Any], fdef: Optional[FieldDef], lean: Any) -> None:
    path = directive['path']
    # target model name -> [(holder, key)]
    groups: Dict[Any, List[Holder]] = {}
    raw_by_root: List[Tuple[Any, List[Any], bool]] = []
    for root in documents:
        holders = collect_holders(root, path)
        if not holders:
            continue
        names = _target_names(model, root, holders, directive, fdef)
        # a list when the field is an array or sits under one
        is_list = isinstance(get_path(root, path), list)
        raw: List[Any] = []
        for (holder, key), name in zip(holders, names):
            value = holder.get(key)
            if value is None:
                continue
            if isinstance(value, list):
                raw.extend(ref_id(v) for v in value)
            else:
                raw.append(ref_id(value))
            if name is not None:
                groups.setdefault(name, []).append((holder, key))
        raw_by_root.append((root, raw, is_list))

    for name, holders in groups.items():
        target = model.registry.get(name)
        ids: List[Any] = []
        for holder, key in holders:
            ids.extend(ref_id(v) for v in ensure_list(holder.get(key)))
        found = await _child_query(target, {'_id': {'in': unique(ids)}}, directive, lean).exec()
        by_id = {ref_id(doc): doc for doc in found}
        for holder, key in holders:
            value = holder.get(key)
            if isinstance(value, list):
                holder[key] = [by_id[i] for i in (ref_id(v) for v in value) if i in by_id]
            else:
                holder[key] = by_id.get(ref_id(value))

    for root, raw, is_list in raw_by_root:
        mark = getattr(root, 'mark_populated', None)
        if callable(mark):
            mark(path, raw if is_list else (raw[0] if raw else None))


async def _populate_computed(model: 'Model', documents: List[Any], directive: Mapping[str, Any], fdef: FieldDef, lean: Any) -> None:
    path = directive['path']
    options = fdef.options
    name = directive.get('model') or options.get('ref')
    local_field = options.get('local_field')
    foreign_field = options.get('foreign_field')
    if name is None or not local_field or not foreign_field:
        raise ValueError(f"Computed field {path!r} on {model.name} is not a populatable reference")
    target = model.registry.get(getattr(name, 'name', name))

    locals_by_root: List[Tuple[Any, List[Any]]] = []
    for root in documents:
        values = [ref_id(v) for v in ensure_list(get_path(root, local_field))]
        locals_by_root.append((root, values))
    wanted = unique(v for _, values in locals_by_root for v in values)
    directive = _keep_selected(directive, foreign_field)
    found = await _child_query(target, {foreign_field: {'in': wanted}}, directive, lean).exec() if wanted else []

    for root, values in locals_by_root:
        mine = [doc for doc in found if _foreign_match(get_path(doc, foreign_field), values)]
        root[path] = (mine[0] if mine else None) if options.get('just_one') else mine
        mark = getattr(root, 'mark_populated', None)
        if callable(mark):
            mark(path, [ref_id(doc) for doc in mine])


def _foreign_match(value: Any, wanted: List[Any]) -> bool:
    if isinstance(value, list):
        return any(ref_id(v) in wanted for v in value)
    return ref_id(value) in wanted


def _keep_selected(directive: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Add ``name`` to an inclusive ``select`` so matching can still read it."""
    include, _ = parse_projection(directive.get('select'))
    if not include or name in include:
        return directive
    return {**directive, 'select': sorted(include | {name})}
