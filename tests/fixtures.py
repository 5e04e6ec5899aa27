"""Shared schemas and sample data for autopopulate tests."""

import pytest

from autopopulate import Schema, field, ref, array, autopopulate_plugin


def build_band_models(registry, lead=True, members=True, **plugin_options):
    """Register Person and Band models; ``lead``/``members`` are their autopopulate options."""
    person_schema = Schema(name=field(str), age=field(int))
    band_schema = Schema(
        name=field(str),
        lead=ref('Person', autopopulate=lead),
        members=array(ref('Person', autopopulate=members)),
    )
    band_schema.plugin(autopopulate_plugin, **plugin_options)
    person_schema.plugin(autopopulate_plugin)
    Person = registry.model('Person', person_schema)
    Band = registry.model('Band', band_schema)
    return Person, Band


@pytest.fixture(scope="function")
async def band_models(registry):
    return build_band_models(registry)


async def create_sample_band(Person, Band):
    """Create three people and a band referencing them by id."""
    axl = await Person.create({'name': 'Axl Rose', 'age': 62})
    slash = await Person.create({'name': 'Slash', 'age': 59})
    duff = await Person.create({'name': 'Duff McKagan', 'age': 60})
    # Store raw ids; no hooks populate a document created through the store
    await Band.store.insert(Band.collection, {
        '_id': 'gnr',
        'name': "Guns N' Roses",
        'lead': axl.id,
        'members': [axl.id, slash.id, duff.id],
    })
    return {'people': [axl, slash, duff], 'band_id': 'gnr'}


@pytest.fixture(scope="function")
async def sample_band(band_models):
    Person, Band = band_models
    return await create_sample_band(Person, Band)
