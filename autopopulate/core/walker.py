from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from .directives import has_directive
from .fields import FieldDef

DEFAULT_MAX_DEPTH = 10

@dataclass(frozen=True)
class DiscoveredPath:
    """A field found eligible for autopopulation.

    Attributes:
        path: Dotted path from the schema root (e.g. "tags.item").
        autopopulate: The raw directive value (bool, mapping or callable).
        ref: Static target model name, if any.
        ref_path: Path of the per-document model selector, if any.
        computed: True for computed (non-stored) fields.
    """

    path: str
    autopopulate: Any
    ref: Optional[str] = None
    ref_path: Optional[str] = None
    computed: bool = False

    def default_options(self) -> Dict[str, Any]:
        """Fresh default populate options; callers may mutate the result."""
        ret: Dict[str, Any] = {'path': self.path, 'options': {'max_depth': DEFAULT_MAX_DEPTH}}
        if self.ref is not None:
            ret['model'] = self.ref
            ret['ref'] = self.ref
        if self.ref_path is not None:
            ret['ref_path'] = self.ref_path
        return ret

def _document_array_schema(fdef: FieldDef) -> Any:
    """Unwrap arrays of arrays down to a document array's schema, if there is one."""
    cur: Optional[FieldDef] = fdef
    while cur is not None and cur.kind == 'array':
        cur = cur.element
    if cur is not None and cur.kind == 'document_array':
        return cur.sub_schema
    return None

def _nested_schema(fdef: FieldDef) -> Any:
    sub = fdef.sub_schema
    if sub is not None:
        return sub
    element = fdef.element
    if element is not None and element.is_array:
        return _document_array_schema(fdef)
    return None

def each_path_recursive(schema: Any, handler: Callable[[str, FieldDef], None]) -> None:
    """Depth-first walk calling ``handler(dotted_path, field_def)`` on every leaf.

    Embedded schemas, document arrays and their discriminator variants are
    descended into with the same path prefix. A schema already on the current
    branch is skipped, so self-referencing schemas terminate; its marker is
    released on the way back out. Computed fields of each walked schema are
    reported after its stored fields.
    """
    _walk(schema, handler, [], set())

def _walk(schema: Any, handler: Callable[[str, FieldDef], None], prefix: List[str], stack: Set[int]) -> None:
    key = id(schema)
    if key in stack:
        return
    stack.add(key)

    def _visit(name: str, fdef: FieldDef) -> None:
        prefix.append(name)
        sub = _nested_schema(fdef)
        if sub is not None:
            _walk(sub, handler, prefix, stack)
            for variant in (getattr(sub, 'discriminators', None) or {}).values():
                _walk(variant, handler, prefix, stack)
        elif fdef.element is not None and fdef.element.is_array:
            # array of arrays of scalars: nothing to descend into
            pass
        else:
            handler('.'.join(prefix), fdef)
        prefix.pop()

    schema.each_path(_visit)
    stack.discard(key)
    for name, fdef in (getattr(schema, 'computed_fields', None) or {}).items():
        prefix.append(name)
        handler('.'.join(prefix), fdef)
        prefix.pop()

def _discovered(path: str, value: Any, options: Dict[str, Any], computed: bool) -> DiscoveredPath:
    return DiscoveredPath(
        path=path,
        autopopulate=value,
        ref=options.get('ref'),
        ref_path=options.get('ref_path'),
        computed=computed,
    )

def discover(schema: Any) -> List[DiscoveredPath]:
    """List every path of ``schema`` marked for autopopulation, in declaration order."""
    found: List[DiscoveredPath] = []

    def _handler(path: str, fdef: FieldDef) -> None:
        computed = fdef.kind == 'computed'
        value = fdef.options.get('autopopulate')
        if has_directive(value):
            found.append(_discovered(path, value, fdef.options, computed))
            return
        element = fdef.element
        if element is not None:
            value = element.options.get('autopopulate')
            if has_directive(value):
                found.append(_discovered(path, value, element.options, computed))

    each_path_recursive(schema, _handler)
    return found
