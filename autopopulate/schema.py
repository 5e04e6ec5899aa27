from __future__ import annotations
import itertools
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .core.fields import FieldDef, FieldDescriptor, array, embedded, field
from .core.hooks import HookRegistry
from .core.utils import split_path
from .document import Document

_schema_ids = itertools.count(1)

# Document attributes and methods; a field of the same name would be hidden by them
RESERVED_NAMES = frozenset(n for n in dir(Document) if not n.startswith('_'))

def _as_descriptor(value: Any) -> FieldDescriptor:
    if isinstance(value, FieldDescriptor):
        return value
    if isinstance(value, Schema):
        return embedded(value)
    if isinstance(value, list) and len(value) == 1:
        return array(value[0])
    return field(value)

class Schema:
    """Ordered field declarations for a document model.

    Fields are given as keyword arguments or a mapping of name to descriptor;
    a bare ``Schema`` means an embedded object, ``[x]`` an array of ``x`` and
    a plain type a stored scalar. Names that are public attributes of
    :class:`~autopopulate.document.Document` (``id``, ``model``, ``get``,
    ``items``, ``save`` and the rest of :data:`RESERVED_NAMES`) are
    rejected with ``ValueError``.

    Example:
        person = Schema(name=field(str))
        band = Schema(
            name=field(str),
            lead=ref('Person', autopopulate=True),
            members=array(ref('Person', autopopulate=True)),
        )
        node = Schema(name=field(str))
        node.add(children=array(node))  # self reference
    """

    def __init__(self, fields: Mapping[str, Any] | None = None, /, *, discriminator_key: str = 'kind', **kwfields: Any):
        # stable identifier, used to key per-schema caches
        self.uid = f"schema-{next(_schema_ids)}"
        self.fields: Dict[str, FieldDef] = {}
        self.computed_fields: Dict[str, FieldDef] = {}
        self.discriminators: Dict[str, Schema] = {}
        self.discriminator_key = discriminator_key
        self.hooks = HookRegistry()
        self.plugins: List[Tuple[Callable[..., Any], Dict[str, Any]]] = []
        self.add(fields, **kwfields)

    def add(self, fields: Mapping[str, Any] | None = None, /, **kwfields: Any) -> 'Schema':
        for name, value in {**dict(fields or {}), **kwfields}.items():
            if name in RESERVED_NAMES:
                raise ValueError(f"Field name {name!r} is reserved by Document")
            desc = _as_descriptor(value)
            desc.__set_name__(None, name)
            fdef = desc.build(self.uid)
            if fdef.kind == 'computed':
                self.computed_fields[name] = fdef
            else:
                self.fields[name] = fdef
        return self

    def each_path(self, visit: Callable[[str, FieldDef], Any]) -> None:
        for name, fdef in list(self.fields.items()):
            visit(name, fdef)

    def path(self, dotted: str) -> Optional[FieldDef]:
        """Look up the field definition at a dotted path, descending into sub-schemas and variants."""
        return _lookup(self, split_path(dotted))

    # ---- hooks -------------------------------------------------------------
    def pre(self, hook_name: str, fn: Optional[Callable[..., Any]] = None):
        """Register a callback run before ``hook_name``; usable as a decorator."""
        def _deco(f):
            self.hooks.register_before(hook_name, f)
            return f
        return _deco(fn) if fn is not None else _deco

    def post(self, hook_name: str, fn: Optional[Callable[..., Any]] = None):
        """Register a callback run after ``hook_name``; usable as a decorator."""
        def _deco(f):
            self.hooks.register_after(hook_name, f)
            return f
        return _deco(fn) if fn is not None else _deco

    def plugin(self, fn: Callable[..., Any], **options: Any) -> 'Schema':
        fn(self, **options)
        self.plugins.append((fn, dict(options)))
        return self

    # ---- polymorphism ------------------------------------------------------
    def discriminator(self, name: str, schema: 'Schema') -> 'Schema':
        """Register ``schema`` as a variant of this (embedded) schema."""
        if name in self.discriminators:
            raise ValueError(f"Discriminator {name!r} already registered")
        self.discriminators[name] = schema
        return schema

    def extend(self, variant: 'Schema') -> 'Schema':
        """New schema with this schema's fields and hooks followed by ``variant``'s."""
        merged = Schema(discriminator_key=self.discriminator_key)
        merged.fields = {**self.fields, **variant.fields}
        merged.computed_fields = {**self.computed_fields, **variant.computed_fields}
        merged.discriminators = dict(variant.discriminators)
        merged.hooks = self.hooks.merged(variant.hooks)
        merged.plugins = list(self.plugins) + list(variant.plugins)
        return merged

    def __repr__(self) -> str:
        return f"Schema({self.uid}, fields={list(self.fields)})"

def _lookup(schema: Any, segments: List[str]) -> Optional[FieldDef]:
    if not segments:
        return None
    head, rest = segments[0], segments[1:]
    fdef = schema.fields.get(head) or schema.computed_fields.get(head)
    if fdef is None:
        for variant in schema.discriminators.values():
            found = _lookup(variant, segments)
            if found is not None:
                return found
        return None
    if not rest:
        return fdef
    cur: Optional[FieldDef] = fdef
    while cur is not None and cur.kind == 'array':
        cur = cur.element
    sub = cur.sub_schema if cur is not None else None
    if sub is None:
        return None
    return _lookup(sub, rest)
