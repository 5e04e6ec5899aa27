from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

@dataclass
class FieldDef:
    """Internal, normalized field description collected by a schema.

    Attributes:
        name: The field name on the declaring schema (e.g. "lead").
        kind: One of "scalar", "array", "embedded", "document_array", "computed".
        meta: The field's options bag. Keys vary by kind: ``ref``, ``ref_path``
            and ``autopopulate`` for references, ``of`` (element FieldDef) for
            arrays, ``schema`` for embedded objects and document arrays,
            ``getter``/``local_field``/``foreign_field``/``just_one`` for
            computed fields.
    """

    name: str
    kind: str
    meta: Dict[str, Any]

    @property
    def options(self) -> Dict[str, Any]:
        return self.meta

    @property
    def element(self) -> Optional['FieldDef']:
        """Element definition of an ``array`` field, else None."""
        return self.meta.get('of') if self.kind == 'array' else None

    @property
    def sub_schema(self) -> Any:
        """Nested schema of an embedded object or document array, else None."""
        if self.kind in ('embedded', 'document_array'):
            return self.meta.get('schema')
        return None

    @property
    def variants(self) -> Dict[str, Any]:
        sub = self.sub_schema
        if sub is None:
            return {}
        return dict(getattr(sub, 'discriminators', None) or {})

    @property
    def is_array(self) -> bool:
        return self.kind in ('array', 'document_array')

class FieldDescriptor:
    """Descriptor used to declare schema fields.

    Users normally use helper factories like :func:`field`, :func:`ref`,
    :func:`array`, :func:`embedded` or :func:`computed` which return a
    ``FieldDescriptor`` instance. The schema converts it to a
    :class:`FieldDef` with normalized metadata.
    """

    def __init__(self, *, kind: str, **meta):
        self.kind = kind
        self.meta = dict(meta)
        self.name: str | None = None

    def __set_name__(self, owner, name):  # pragma: no cover - simple
        self.name = name

    def build(self, parent_name: str | None = None) -> FieldDef:
        """Build a :class:`FieldDef` consumed by the schema.

        Array elements are built recursively and keep the array's name.
        """
        meta = dict(self.meta)
        of = meta.get('of')
        if isinstance(of, FieldDescriptor):
            of.name = self.name
            meta['of'] = of.build(parent_name)
        return FieldDef(name=self.name or '', kind=self.kind, meta=meta)

    def __repr__(self) -> str:
        return f"FieldDescriptor(kind={self.kind!r}, name={self.name!r})"

def _model_name(target: Any) -> Any:
    if target is None or isinstance(target, str):
        return target
    name = getattr(target, 'name', None)
    if isinstance(name, str):
        return name
    return getattr(target, '__name__', target)

def _is_schema(value: Any) -> bool:
    from ..schema import Schema  # local import to avoid cycles
    return isinstance(value, Schema)

def field(type_: Any = None, /, **meta) -> FieldDescriptor:
    """Declare a plain stored field.

    Examples:
        Schema(name=field(str), age=field(int, default=0))
    """
    if type_ is not None:
        meta = dict(meta)
        meta['type'] = type_
    return FieldDescriptor(kind='scalar', **meta)

def ref(target: Any = None, /, *, ref_path: str | None = None, autopopulate: Any = None, **meta) -> FieldDescriptor:
    """Declare a reference to a document of another model.

    Args:
        target: Target model, either the model itself or its registered name.
            Omit it and pass ``ref_path`` when the target model is stored per
            document.
        ref_path: Dotted path of a field holding the target model name.
        autopopulate: ``True``, an options mapping (``select``, ``match``,
            ``populate``, ``options``, ``max_depth``) or a callable
            ``fn(options, operation)`` returning either. When truthy the field
            is resolved automatically on reads and after saves.
        **meta: Extra options kept on the field.

    Examples:
        band = Schema(
            name=field(str),
            lead=ref('Person', autopopulate=True),
            members=array(ref('Person', autopopulate={'select': 'name'})),
        )
    """
    m = dict(meta)
    m['type'] = 'ref'
    if target is not None:
        m['ref'] = _model_name(target)
    if ref_path is not None:
        m['ref_path'] = ref_path
    if autopopulate is not None:
        m['autopopulate'] = autopopulate
    return FieldDescriptor(kind='scalar', **m)

def array(of: Any, /, **meta) -> FieldDescriptor:
    """Declare an array field.

    ``of`` may be a field descriptor (array of scalars or references,
    possibly another array), a :class:`~autopopulate.schema.Schema`
    (document array) or a plain Python type.

    Examples:
        Schema(
            tags=array(str),
            friends=array(ref('Account', autopopulate={'max_depth': 2})),
            comments=array(comment_schema),
        )
    """
    if _is_schema(of):
        return FieldDescriptor(kind='document_array', schema=of, **meta)
    if isinstance(of, FieldDescriptor) and of.kind == 'embedded':
        return FieldDescriptor(kind='document_array', schema=of.meta.get('schema'), **meta)
    if not isinstance(of, FieldDescriptor):
        of = field(of)
    return FieldDescriptor(kind='array', of=of, **meta)

def embedded(schema: Any, /, **meta) -> FieldDescriptor:
    """Declare a single nested object described by ``schema``."""
    return FieldDescriptor(kind='embedded', schema=schema, **meta)

def computed(
    getter: Optional[Callable[[Any], Any]] = None,
    /,
    *,
    ref: Any = None,
    local_field: str | None = None,
    foreign_field: str | None = None,
    just_one: bool = False,
    autopopulate: Any = None,
    **meta,
) -> FieldDescriptor:
    """Declare a computed (non-stored) field.

    A computed field either derives its value from the document via
    ``getter(document)`` or, when ``ref`` is set, is filled by populating the
    documents of ``ref`` whose ``foreign_field`` matches this document's
    ``local_field``.

    Examples:
        author_schema.add(
            posts=computed(ref='Post', local_field='_id', foreign_field='author',
                           autopopulate=True),
            display=computed(lambda doc: doc['name'].title()),
        )
    """
    m = dict(meta)
    if getter is not None:
        m['getter'] = getter
    if ref is not None:
        m['ref'] = _model_name(ref)
        m['local_field'] = local_field
        m['foreign_field'] = foreign_field
        m['just_one'] = bool(just_one)
    if autopopulate is not None:
        m['autopopulate'] = autopopulate
    return FieldDescriptor(kind='computed', **m)
