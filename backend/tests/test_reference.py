"""Tests for reference data loading."""

import json
import logging

import pytest

from tagcheck import ReferenceData, ReferenceDataError
from tagcheck.reference import Dataset, DeprecatedTagRule


@pytest.fixture
def reference() -> ReferenceData:
    return ReferenceData()


def write_json(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')


def test_starts_unloaded(reference):
    assert reference.status == {'deprecated': False, 'nsi': False}
    assert reference.deprecated_tag_rules() == []
    assert reference.name_suggestion_index() is None


def test_load_deprecated(reference, deprecated_rules):
    reference.load_deprecated(deprecated_rules)

    assert reference.is_loaded(Dataset.DEPRECATED)
    assert reference.is_loaded('deprecated')
    assert reference.deprecated_tag_rules()[1] == DeprecatedTagRule(old={'highway': 'ford'}, replace={'ford': '*'})


def test_load_deprecated_accepts_wrapped_list(reference, deprecated_rules):
    reference.load_deprecated({'deprecated': deprecated_rules})
    assert len(reference.deprecated_tag_rules()) == 2


@pytest.mark.parametrize('data', [
    'not a list',
    [{'replace': {'a': 'b'}}],
    [{'old': {}}],
    [{'old': {'a': 'b'}, 'replace': ['c']}],
])
def test_bad_deprecated_data_raises(reference, data):
    with pytest.raises(ReferenceDataError):
        reference.load_deprecated(data)
    assert not reference.is_loaded('deprecated')


def test_listeners_fire_per_dataset(reference, deprecated_rules, nsi_data, nsi_generics, nsi_trees):
    loaded = []
    reference.on_loaded(loaded.append)

    reference.load_deprecated(deprecated_rules)
    reference.load_nsi(nsi_data, nsi_generics, nsi_trees)

    assert loaded == [Dataset.DEPRECATED, Dataset.NSI]


def test_failing_listener_is_logged(reference, deprecated_rules, caplog):
    def broken(dataset):
        raise RuntimeError("listener failed")

    reference.on_loaded(broken)
    with caplog.at_level(logging.ERROR, logger='tagcheck.reference'):
        reference.load_deprecated(deprecated_rules)

    assert reference.is_loaded('deprecated')
    assert "listener failed for deprecated" in caplog.text


def test_load_directory(tmp_path, reference, deprecated_rules, nsi_data, nsi_generics, nsi_trees):
    write_json(tmp_path / 'deprecated.json', deprecated_rules)
    write_json(tmp_path / 'nsi_data.json', nsi_data)
    write_json(tmp_path / 'nsi_generics.json', nsi_generics)
    write_json(tmp_path / 'nsi_trees.json', nsi_trees)

    status = reference.load_directory(tmp_path)

    assert status == {'deprecated': True, 'nsi': True}
    assert reference.name_suggestion_index().main_tags == {'brand:wikidata'}


def test_load_directory_skips_missing_files(tmp_path, reference, deprecated_rules):
    write_json(tmp_path / 'deprecated.json', deprecated_rules)
    assert reference.load_directory(tmp_path) == {'deprecated': True, 'nsi': False}


def test_load_directory_rejects_invalid_json(tmp_path, reference):
    (tmp_path / 'deprecated.json').write_text('[{', encoding='utf-8')

    with pytest.raises(ReferenceDataError) as exc_info:
        reference.load_directory(tmp_path)
    assert exc_info.value.dataset == 'deprecated'


def test_clear(reference, deprecated_rules):
    reference.load_deprecated(deprecated_rules)
    reference.clear()
    assert reference.status == {'deprecated': False, 'nsi': False}


@pytest.mark.parametrize('data, trees', [
    ({'nsi': ['brands/shop/supermarket']}, {'trees': {'brands': {}}}),
    ({'nsi': {'brands/shop/supermarket': ['oops']}}, {'trees': {'brands': {}}}),
    ({'nsi': {'brands/shop/supermarket': {'properties': 'oops'}}}, {'trees': {'brands': {}}}),
    ({'nsi': {'brands/shop/supermarket': {'properties': {'exclude': ['a']}}}}, {'trees': {'brands': {}}}),
    ({'nsi': {}}, {'trees': {'brands': 'brand:wikidata'}}),
    ({'nsi': {}}, ['brands']),
])
def test_bad_nsi_data_raises(reference, data, trees):
    with pytest.raises(ReferenceDataError):
        reference.load_nsi(data, {}, trees)
    assert not reference.is_loaded('nsi')


def test_load_directory_rejects_bad_nsi_file(tmp_path, reference, nsi_trees):
    write_json(tmp_path / 'nsi_data.json', {'nsi': {'brands/shop/supermarket': {'properties': {'exclude': ['a']}}}})
    write_json(tmp_path / 'nsi_trees.json', nsi_trees)

    with pytest.raises(ReferenceDataError) as exc_info:
        reference.load_directory(tmp_path)
    assert exc_info.value.dataset == 'brands/shop/supermarket'
