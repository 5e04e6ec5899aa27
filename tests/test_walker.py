import pytest

from autopopulate import Schema, field, ref, array, embedded, computed, discover
from autopopulate.core.walker import DEFAULT_MAX_DEPTH, each_path_recursive


def _paths(schema):
    return [p.path for p in discover(schema)]


def test_flat_schema_reports_every_marked_field_in_order():
    schema = Schema({f"f{i}": ref('Person', autopopulate=True) for i in range(5)})
    schema.add(plain=field(str), off=ref('Person', autopopulate=False))
    assert _paths(schema) == ['f0', 'f1', 'f2', 'f3', 'f4']
    assert all(p.ref == 'Person' for p in discover(schema))


def test_nested_and_array_paths_use_dotted_prefix():
    tag = Schema(item=ref('Tag', autopopulate=True), label=field(str))
    schema = Schema(
        owner=embedded(Schema(account=ref('Account', autopopulate={'select': 'name'}))),
        tags=array(tag),
        friends=array(ref('Account', autopopulate=True)),
    )
    found = discover(schema)
    assert [p.path for p in found] == ['owner.account', 'tags.item', 'friends']
    assert found[0].autopopulate == {'select': 'name'}
    # element options of an array are reported under the array's path
    assert found[2].ref == 'Account'


def test_self_referencing_schema_terminates():
    node = Schema(name=field(str), parent=ref('Node', autopopulate=True))
    node.add(children=array(node))
    assert _paths(node) == ['parent']


def test_sibling_reuse_of_a_schema_is_walked_twice():
    address = Schema(city=ref('City', autopopulate=True))
    schema = Schema(home=address, work=address)
    assert _paths(schema) == ['home.city', 'work.city']


def test_document_array_discriminators_are_walked():
    item = Schema(qty=field(int))
    item.discriminator('Clicked', Schema(element=ref('Product', autopopulate=True)))
    item.discriminator('Purchased', Schema(product=ref('Product', autopopulate=True)))
    schema = Schema(events=array(item))
    assert _paths(schema) == ['events.element', 'events.product']


def test_array_of_document_arrays_is_unwrapped():
    cell = Schema(value=ref('Value', autopopulate=True))
    schema = Schema(grid=array(array(cell)))
    assert _paths(schema) == ['grid.value']


def test_computed_fields_come_after_stored_fields():
    schema = Schema(
        posts=computed(ref='Post', local_field='_id', foreign_field='author', autopopulate=True),
        lead=ref('Person', autopopulate=True),
        title=computed(lambda doc: doc['name']),
    )
    found = discover(schema)
    assert [p.path for p in found] == ['lead', 'posts']
    assert found[1].computed is True


def test_each_path_recursive_visits_leaves():
    seen = []
    schema = Schema(a=field(int), b=Schema(c=field(str)), d=array(field(int)))
    each_path_recursive(schema, lambda path, fdef: seen.append(path))
    assert seen == ['a', 'b.c', 'd']


def test_default_options_are_fresh_copies():
    (found,) = discover(Schema(lead=ref('Person', autopopulate=True)))
    first = found.default_options()
    first['options']['max_depth'] = 1
    assert found.default_options() == {
        'path': 'lead',
        'model': 'Person',
        'ref': 'Person',
        'options': {'max_depth': DEFAULT_MAX_DEPTH},
    }


def test_ref_path_is_recorded():
    (found,) = discover(Schema(on=ref(ref_path='on_model', autopopulate=True), on_model=field(str)))
    assert found.ref is None
    assert found.default_options()['ref_path'] == 'on_model'


@pytest.mark.parametrize("name", ['model', 'id', 'get', 'populated', 'items', 'save'])
def test_document_attribute_names_are_rejected(name):
    with pytest.raises(ValueError, match="reserved"):
        Schema(**{name: field(str)})
    schema = Schema(title=field(str))
    with pytest.raises(ValueError, match="reserved"):
        schema.add({name: field(str)})
