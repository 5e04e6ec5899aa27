"""The autopopulate schema plugin.

Installs lifecycle hooks that populate every field declared with an
``autopopulate`` option:

- before each read (``find``, ``find_one``, ``find_one_and_update``,
  ``find_one_and_delete``, ``find_one_and_replace``) the planned directives
  are queued on the query;
- after each read, documents of discriminator variants get a second pass for
  the variant's own fields;
- after ``save`` on a top-level document, paths whose reference list changed
  since they were populated are populated again.

Example:
    band_schema = Schema(
        name=field(str),
        lead=ref('Person', autopopulate=True),
    )
    band_schema.plugin(autopopulate_plugin)
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from .core.planner import plan
from .core.walker import DiscoveredPath
from .query import READ_OPERATIONS
from .registry import PathCache, path_cache as _default_cache

_logger = logging.getLogger("autopopulate")

Functions = Union[None, str, re.Pattern, Iterable[str]]


def hook_filter(functions: Functions) -> Callable[[str], bool]:
    """Predicate telling whether a hook name should be instrumented.

    ``functions`` may be None (all hooks), a regex (compiled or string,
    matched with ``search``) or a collection of hook names.
    """
    if functions is None:
        return lambda name: True
    if isinstance(functions, str):
        functions = re.compile(functions)
    if isinstance(functions, re.Pattern):
        pattern = functions
        return lambda name: pattern.search(name) is not None
    allowed = set(functions)
    return lambda name: name in allowed


def _before_read(paths: Sequence[DiscoveredPath]) -> Callable[[Any], None]:
    def before_read(query):
        for directive in plan(query, paths):
            query.resolve(directive)
    return before_read


def _after_read(cache: PathCache) -> Callable[[Any, Any], Any]:
    async def after_read(query, result):
        await populate_variants(query, result, cache)
    return after_read


def is_stale(document: Any) -> Callable[[Dict[str, Any]], bool]:
    """Filter admitting the paths of ``document`` that need populating after a save.

    A path is admitted when it was never populated, or when it is a list
    whose populated ids no longer match the current value (length differs,
    value missing, or a populated id is None).
    """
    def _filter(options: Dict[str, Any]) -> bool:
        resolved = document.already_resolved(options['path'])
        if isinstance(resolved, list):
            current = document.current_value(options['path'])
            return (
                current is None
                or len(resolved) != len(current)
                or any(v is None for v in resolved)
            )
        return True
    return _filter


def _after_save(paths: Sequence[DiscoveredPath]) -> Callable[[Any], Any]:
    async def after_save(document):
        if not paths:
            return
        # top-level documents only
        if document.is_subdocument():
            return
        directives = plan(document, paths, is_stale(document))
        if directives:
            await document.populate(directives)
    return after_save


@dataclass
class VariantGroup:
    """Documents of one discriminator variant returned by a single read."""

    model: Any
    paths: List[DiscoveredPath]
    documents: List[Any] = field(default_factory=list)


def group_by_variant(documents: Iterable[Any], cache: PathCache) -> Dict[str, VariantGroup]:
    groups: Dict[str, VariantGroup] = {}
    for doc in documents:
        model = getattr(doc, 'model', None)
        if model is None or model.base_model_name is None:
            continue
        group = groups.get(model.name)
        if group is None:
            paths = [p for p in cache.get(model.schema) if doc.populated(p.path) is None]
            group = groups[model.name] = VariantGroup(model=model, paths=paths)
        group.documents.append(doc)
    return groups


async def populate_variants(operation: Any, result: Any, cache: Optional[PathCache] = None) -> None:
    """Populate variant-only fields of discriminator documents in ``result``.

    One batched ``model.populate`` per variant model; lean results are
    skipped because their variant cannot be told apart.
    """
    if result is None or operation.is_lightweight_mode():
        return
    docs = result if isinstance(result, list) else [result]
    for name, group in group_by_variant(docs, cache if cache is not None else _default_cache).items():
        directives = plan(operation, group.paths)
        if not directives:
            continue
        _logger.debug("autopopulate: variant %s, %d document(s), paths %s",
                      name, len(group.documents), [d['path'] for d in directives])
        await group.model.populate(group.documents, directives)


def autopopulate_plugin(schema: Any, functions: Functions = None, path_cache: Optional[PathCache] = None) -> None:
    """Install autopopulate hooks on ``schema``.

    Args:
        schema: The schema to instrument. Its autopopulate paths are
            discovered now and cached for the schema's lifetime.
        functions: Restrict the instrumented hooks, by names
            (e.g. ``['find_one', 'save']``) or by a regex.
        path_cache: Cache to use instead of the process-wide one.
    """
    cache = path_cache if path_cache is not None else _default_cache
    paths = cache.get(schema)
    wanted = hook_filter(functions)
    for op in READ_OPERATIONS:
        if not wanted(op):
            continue
        schema.hooks.register_before(op, _before_read(paths))
        schema.hooks.register_after(op, _after_read(cache))
    if wanted('save'):
        schema.hooks.register_after('save', _after_save(paths))
