"""Tests for the missing_role rule."""

import pytest

from tagcheck.base import Severity, ValidationContext
from tagcheck.graph import EntityGraph, Member, Relation
from tagcheck.rules import MissingRoleRule

from tests.fixtures import create_relation, create_way, run_rule


@pytest.fixture
def rule() -> MissingRoleRule:
    return MissingRoleRule(ValidationContext())


def test_no_errors_on_init(rule):
    assert run_rule(rule, EntityGraph()) == []


def test_ignores_way_with_no_relations(rule):
    assert run_rule(rule, create_way({})) == []


def test_ignores_null_role_in_non_multipolygon(rule):
    assert run_rule(rule, create_relation({'type': 'boundary'}, None)) == []


def test_ignores_relation_without_type(rule):
    assert run_rule(rule, create_relation({'name': 'Somewhere'}, None)) == []


@pytest.mark.parametrize('role', ['outer', 'inner', ' outer '])
def test_ignores_valid_roles(rule, role):
    assert run_rule(rule, create_relation({'type': 'multipolygon'}, role)) == []


@pytest.mark.parametrize('role', [None, '', '   '])
def test_flags_missing_role_in_multipolygon(rule, role):
    issues = run_rule(rule, create_relation({'type': 'multipolygon'}, role))

    assert len(issues) == 2
    assert issues[0].id == issues[1].id
    issue = issues[0]
    assert issue.type == 'missing_role'
    assert issue.severity == Severity.WARNING
    assert issue.entity_ids == ['r-1', 'w-1']
    assert {f.id for f in issue.fixes} == {'set_role_outer', 'set_role_inner', 'remove_from_relation'}


def test_flags_unknown_role_in_multipolygon(rule):
    issues = run_rule(rule, create_relation({'type': 'multipolygon'}, 'outline'))
    assert len(issues) == 2
    assert 'outline' in issues[0].message


def test_skips_dangling_member(rule):
    relation = Relation(
        id='r-1',
        tags={'type': 'multipolygon'},
        members=(Member('w-404', 'way', None),),
    )
    graph = EntityGraph([relation])
    assert rule.validate(relation, graph) == []


def test_same_way_twice_gets_two_issue_ids(rule):
    graph = create_relation({'type': 'multipolygon'}, None)
    relation = Relation(
        id='r-1',
        tags={'type': 'multipolygon'},
        members=(Member('w-1', 'way', None), Member('w-1', 'way', '')),
    )
    graph = graph.replace(relation)

    issues = rule.validate(relation, graph)

    assert len(issues) == 2
    assert issues[0].id != issues[1].id
