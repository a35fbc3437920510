"""Tests for graph snapshots and payload parsing."""

import pytest

from tagcheck import GraphPayloadError
from tagcheck.graph import EntityGraph, Node, Relation, Way, entity_from_dict

from tests.fixtures import create_closed_way, create_open_way, create_point, create_relation, create_way


def test_from_dict_with_entity_list():
    graph = EntityGraph.from_dict({
        'entities': [
            {'id': 'n-1', 'loc': [4, 4]},
            {'id': 'n-2', 'loc': [4, 5]},
            {'id': 'w-1', 'nodes': ['n-1', 'n-2'], 'tags': {'highway': 'path'}, 'version': 2},
        ],
    })

    way = graph.get_entity('w-1')
    assert isinstance(way, Way)
    assert way.nodes == ('n-1', 'n-2')
    assert way.version == '2'
    assert not way.is_new
    assert graph.get_entity('n-1').loc == (4.0, 4.0)


def test_from_dict_with_typed_lists():
    graph = EntityGraph.from_dict({
        'ways': [{'id': 'w-1', 'nodes': []}],
        'relations': [{'id': 'r-1', 'members': [{'id': 'w-1', 'role': 'outer'}]}],
    })

    relation = graph.get_entity('r-1')
    assert isinstance(relation, Relation)
    assert relation.members[0].type == 'way'
    assert relation.members[0].role == 'outer'


@pytest.mark.parametrize('item', [
    {'tags': {}},
    {'id': 'n-1', 'tags': ['building']},
    {'id': 'n-1', 'loc': ['x', 1]},
    {'id': 'x-1'},
    {'id': 'r-1', 'members': [{'role': 'outer'}]},
    {'id': 'w-1', 'nodes': 5},
    {'id': 'r-1', 'members': 5},
])
def test_bad_entities_raise(item):
    with pytest.raises(GraphPayloadError):
        entity_from_dict(item)


@pytest.mark.parametrize('payload', [
    ['n-1'],
    {'entities': 5},
    {'entities': {'id': 'n-1'}},
    {'ways': 'w-1'},
])
def test_bad_payloads_raise(payload):
    with pytest.raises(GraphPayloadError):
        EntityGraph.from_dict(payload)


def test_tags_are_read_only():
    node = Node(id='n-1', tags={'amenity': 'bench'})
    with pytest.raises(TypeError):
        node.tags['amenity'] = 'cafe'


def test_parent_indexes():
    graph = create_relation({'type': 'multipolygon'})

    assert [w.id for w in graph.parent_ways('n-1')] == ['w-1']
    assert [r.id for r in graph.parent_relations('w-1')] == ['r-1']
    assert not graph.has_parent_relations('r-1')


def test_geometry():
    assert create_point({}).geometry(Node(id='n-1')) == 'point'

    graph = create_closed_way({'building': 'yes'})
    assert graph.geometry(graph.get_entity('n-1')) == 'vertex'
    assert graph.geometry(graph.get_entity('w-1')) == 'area'

    graph = create_open_way({'building': 'yes'})
    assert graph.geometry(graph.get_entity('w-1')) == 'line'

    graph = create_relation({'type': 'multipolygon'})
    assert graph.geometry(graph.get_entity('r-1')) == 'area'


def test_replace_returns_a_new_snapshot():
    base = create_way({'highway': 'primary'})
    head = base.replace(Way(id='w-1', nodes=('n-1', 'n-2'), tags={'highway': 'road'}))

    assert base.get_entity('w-1').tags['highway'] == 'primary'
    assert head.get_entity('w-1').tags['highway'] == 'road'


def test_diff():
    base = create_way({'highway': 'primary'})
    head = base.replace(
        Way(id='w-1', nodes=('n-1', 'n-2'), tags={'highway': 'road'}),
        Node(id='n-3', loc=(5, 5)),
    ).remove('n-2')

    changes = head.diff(base)

    assert changes.to_dict() == {'created': ['n-3'], 'modified': ['w-1'], 'deleted': ['n-2']}
    assert [e.id for e in changes.changed] == ['w-1', 'n-3']


def test_unchanged_graph_has_no_changes():
    graph = create_way({})
    assert graph.diff(graph).changed == []


def test_child_nodes_skip_missing_references():
    graph = create_way({}).remove('n-2')
    assert [n.id for n in graph.child_nodes(graph.get_entity('w-1'))] == ['n-1']
