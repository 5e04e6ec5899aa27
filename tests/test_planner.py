import pytest

from autopopulate import Schema, field, ref, array, discover, plan, resolve_directive
from autopopulate.core.directives import SKIP, Dynamic, StaticOptions, classify, has_directive
from autopopulate.core.planner import ceiling_reached, depth_limits, is_enabled


class FakeOperation:
    """Minimal operation context for planner tests."""

    def __init__(self, options=None, lean=False, resolved=None, values=None):
        self.options = dict(options or {})
        self.lean = lean
        self.resolved = dict(resolved or {})
        self.values = dict(values or {})

    def get_options(self):
        return self.options

    def is_lightweight_mode(self):
        return bool(self.lean)

    def lightweight_options(self):
        return self.lean if isinstance(self.lean, dict) else {}

    def already_resolved(self, path):
        return self.resolved.get(path)

    def current_value(self, path):
        return self.values.get(path)


def _paths(**fields):
    return discover(Schema(name=field(str), **fields))


def test_classify():
    assert classify(True) == StaticOptions()
    assert classify({'select': 'name'}) == StaticOptions({'select': 'name'})
    assert isinstance(classify(lambda: True), Dynamic)
    for value in (False, None, 0, 'yes', 3):
        assert classify(value) is SKIP
    assert has_directive({}) is True
    assert has_directive(False) is False


def test_select_directive_shape():
    paths = _paths(lead=ref('Person', autopopulate={'select': 'name'}))
    directives = plan(FakeOperation(), paths)
    assert directives == [{
        'path': 'lead',
        'model': 'Person',
        'ref': 'Person',
        'select': 'name',
        'options': {'_depth': 1, 'max_depth': 10},
    }]


def test_planning_twice_gives_equal_directives_and_leaves_config_untouched():
    config = {'select': 'name', 'max_depth': 3}
    paths = _paths(lead=ref('Person', autopopulate=config))
    first = plan(FakeOperation(), paths)
    second = plan(FakeOperation(), paths)
    assert first == second
    assert first[0]['options'] == {'_depth': 1, 'max_depth': 3}
    assert 'max_depth' not in first[0]
    assert config == {'select': 'name', 'max_depth': 3}


def test_callable_returning_false_skips_path():
    paths = _paths(lead=ref('Person', autopopulate=lambda options: False), co=ref('Person', autopopulate=True))
    assert [d['path'] for d in plan(FakeOperation(), paths)] == ['co']


@pytest.mark.parametrize("fn", [
    lambda: {'select': 'name'},
    lambda options: {'select': 'name'},
    lambda options, operation: {'select': 'name'},
])
def test_callable_arities(fn):
    (directive,) = plan(FakeOperation(), _paths(lead=ref('Person', autopopulate=fn)))
    assert directive['select'] == 'name'


def test_callable_receives_options_and_operation():
    calls = []

    def choose(options, operation):
        calls.append((dict(options), operation))
        return options

    op = FakeOperation()
    (directive,) = plan(op, _paths(lead=ref('Person', autopopulate=choose)))
    assert len(calls) == 1
    received, operation = calls[0]
    assert operation is op
    assert received['path'] == 'lead'
    # returning the received options populates with them
    assert directive == received


def test_callable_returning_true_uses_defaults():
    (directive,) = plan(FakeOperation(), _paths(lead=ref('Person', autopopulate=lambda: True)))
    assert directive == {'path': 'lead', 'model': 'Person', 'ref': 'Person', 'options': {'_depth': 1, 'max_depth': 10}}


def test_disabled_operation_plans_nothing():
    paths = _paths(lead=ref('Person', autopopulate=True))
    assert plan(FakeOperation({'autopopulate': False}), paths) == []


def test_lean_requires_opt_in():
    paths = _paths(lead=ref('Person', autopopulate=True))
    assert plan(FakeOperation(lean=True), paths) == []
    assert [d['path'] for d in plan(FakeOperation(lean={'autopopulate': True}), paths)] == ['lead']
    assert is_enabled(FakeOperation(lean={'virtuals': True})) is False


def test_depth_ceiling():
    paths = _paths(lead=ref('Person', autopopulate=True))
    assert plan(FakeOperation({'_depth': 2, 'max_depth': 2}), paths) == []
    (directive,) = plan(FakeOperation({'_depth': 1, 'max_depth': 2}), paths)
    assert directive['options'] == {'_depth': 2, 'max_depth': 2}


def test_operation_autopopulate_mapping_overrides_max_depth():
    assert depth_limits({'max_depth': 5, 'autopopulate': {'max_depth': 1}}) == (0, 1)
    assert depth_limits({}) == (0, None)
    paths = _paths(lead=ref('Person', autopopulate=True))
    assert plan(FakeOperation({'_depth': 1, 'autopopulate': {'max_depth': 1}}), paths) == []


def test_zero_max_depth_means_no_ceiling():
    assert ceiling_reached(50, 0) is False
    assert ceiling_reached(50, None) is False
    assert ceiling_reached(3, 3) is True


def test_path_filter():
    paths = _paths(lead=ref('Person', autopopulate=True), members=array(ref('Person', autopopulate=True)))
    directives = plan(FakeOperation(), paths, lambda options: options['path'] != 'lead')
    assert [d['path'] for d in directives] == ['members']


def test_resolve_directive_merges_static_options():
    base = {'path': 'lead', 'model': 'Person', 'options': {'max_depth': 10}}
    out = resolve_directive({'match': {'age': {'gt': 18}}}, base)
    assert out['match'] == {'age': {'gt': 18}}
    assert resolve_directive(None, base) is None
    assert resolve_directive(lambda: 'yes', base) is None


def test_directive_callable_error_escapes_plan():
    def boom(options, operation):
        raise RuntimeError("cannot choose options")

    paths = _paths(lead=ref('Person', autopopulate=boom))
    with pytest.raises(RuntimeError, match="cannot choose options"):
        plan(FakeOperation(), paths)
