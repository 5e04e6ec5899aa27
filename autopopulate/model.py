from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from .document import Document
from .query import Query
from .schema import Schema

if TYPE_CHECKING:  # pragma: no cover
    from .adapters.base import BaseStore
    from .registry import ModelRegistry


class Model:
    """A named collection of documents described by a schema.

    Models are created through :meth:`ModelRegistry.model`. Calling a model
    builds a new, unsaved document.

    Example:
        Person = registry.model('Person', person_schema)
        axl = await Person.create({'name': 'Axl Rose'})
        found = await Person.find_by_id(axl.id)
    """

    def __init__(
        self,
        registry: 'ModelRegistry',
        name: str,
        schema: Schema,
        *,
        collection: str | None = None,
        base: Optional['Model'] = None,
        discriminator_value: Any = None,
    ):
        self.registry = registry
        self.name = name
        self.schema = schema
        self.base = base
        self.base_model_name = base.name if base is not None else None
        self.collection = collection or (base.collection if base is not None else name.lower())
        self.discriminator_value = discriminator_value
        self.discriminators: Dict[Any, Model] = {}

    def __repr__(self) -> str:
        return f"<Model {self.name}>"

    def __call__(self, data: Optional[Mapping[str, Any]] = None, **fields: Any) -> Document:
        return Document(self, {**dict(data or {}), **fields})

    @property
    def store(self) -> 'BaseStore':
        return self.registry.store

    # ---- polymorphism --------------------------------------------------------
    def discriminator(self, name: str, schema: Schema, value: Any = None) -> 'Model':
        """Register a variant model sharing this model's collection.

        The variant's schema is this model's schema extended with ``schema``
        (fields and hooks of both). Documents are tagged with ``value``
        (default: ``name``) under the schema's discriminator key.
        """
        value = name if value is None else value
        if value in self.discriminators:
            raise ValueError(f"Discriminator {value!r} already registered on {self.name}")
        merged = self.schema.extend(schema)
        variant = Model(self.registry, name, merged, base=self, discriminator_value=value)
        self.discriminators[value] = variant
        self.registry.register(variant)
        return variant

    def base_where(self) -> Dict[str, Any]:
        if self.discriminator_value is None:
            return {}
        return {self.schema.discriminator_key: self.discriminator_value}

    def model_for(self, data: Mapping[str, Any]) -> 'Model':
        value = data.get(self.schema.discriminator_key)
        return self.discriminators.get(value, self)

    def hydrate(self, data: Mapping[str, Any]) -> Document:
        return Document(self.model_for(data), dict(data), is_new=False)

    # ---- reads -----------------------------------------------------------------
    def find(self, where: Mapping[str, Any] | None = None, projection: Any = None, options: Mapping[str, Any] | None = None) -> Query:
        return Query(self, 'find', where, projection=projection, options=options)

    def find_one(self, where: Mapping[str, Any] | None = None, projection: Any = None, options: Mapping[str, Any] | None = None) -> Query:
        return Query(self, 'find_one', where, projection=projection, options=options)

    def find_by_id(self, doc_id: Any, projection: Any = None, options: Mapping[str, Any] | None = None) -> Query:
        return self.find_one({'_id': doc_id}, projection, options)

    def find_one_and_update(self, where: Mapping[str, Any] | None, update: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> Query:
        return Query(self, 'find_one_and_update', where, update=update, options=options)

    def find_one_and_replace(self, where: Mapping[str, Any] | None, replacement: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> Query:
        return Query(self, 'find_one_and_replace', where, update=replacement, options=options)

    def find_one_and_delete(self, where: Mapping[str, Any] | None = None, options: Mapping[str, Any] | None = None) -> Query:
        return Query(self, 'find_one_and_delete', where, options=options)

    # ---- writes ------------------------------------------------------------------
    async def create(self, data: Union[Mapping[str, Any], List[Mapping[str, Any]]]) -> Any:
        if isinstance(data, list):
            return [await self.create(item) for item in data]
        return await self(data).save()

    # ---- population ----------------------------------------------------------------
    async def populate(self, documents: Any, directives: Any, *, lean: Any = False) -> Any:
        """Populate ``documents`` (one or a list) in place; one resolver pass per directive."""
        from .populate import populate_documents  # local import to avoid cycles
        docs = documents if isinstance(documents, list) else [documents]
        await populate_documents(self, docs, directives, lean=lean)
        return documents
