import re

import pytest

from autopopulate import Schema, field
from autopopulate.core.hooks import HookRegistry, register_after, register_before
from autopopulate.plugin import hook_filter


async def test_hooks_run_in_order_with_flexible_arity():
    events = []
    hooks = HookRegistry()
    hooks.register_before('find', lambda: events.append('pre0'))
    hooks.register_before('find', lambda op: events.append(('pre1', op)))

    async def post(op, result):
        events.append(('post', op, result))

    hooks.register_after('find', post)
    await hooks.run_before('find', 'q')
    await hooks.run_after('find', 'q', [1])
    assert events == ['pre0', ('pre1', 'q'), ('post', 'q', [1])]
    assert hooks.names() == ['find']


async def test_hook_errors_propagate():
    hooks = HookRegistry()

    def boom(op):
        raise RuntimeError("hook failed")

    hooks.register_before('save', boom)
    with pytest.raises(RuntimeError, match="hook failed"):
        await hooks.run_before('save', object())


def test_non_callable_hook_is_rejected():
    with pytest.raises(TypeError):
        HookRegistry().register_after('save', 'not callable')


def test_schema_decorators_and_module_helpers():
    schema = Schema(name=field(str))

    @schema.pre('save')
    def touch(doc):
        return doc

    register_before(schema, 'find', touch)
    register_after(schema, 'find', touch)
    assert schema.hooks.before('save') == (touch,)
    assert schema.hooks.before('find') == (touch,)
    assert schema.hooks.after('find') == (touch,)


def test_merged_registry_keeps_both_sides():
    a, b = HookRegistry(), HookRegistry()
    a.register_after('save', print)
    b.register_after('save', len)
    assert a.merged(b).after('save') == (print, len)
    assert a.after('save') == (print,)


@pytest.mark.parametrize("functions,allowed,denied", [
    (None, ['find', 'save'], []),
    (['find_one', 'save'], ['find_one', 'save'], ['find', 'find_one_and_update']),
    ({'find'}, ['find'], ['find_one']),
    (re.compile(r'^find_one'), ['find_one', 'find_one_and_delete'], ['find', 'save']),
    (r'update$', ['find_one_and_update'], ['find', 'save']),
])
def test_hook_filter(functions, allowed, denied):
    wanted = hook_filter(functions)
    assert all(wanted(name) for name in allowed)
    assert not any(wanted(name) for name in denied)
