"""Graph builders shared by the rule tests."""

from .graphs import (
    create_point,
    create_way,
    create_open_way,
    create_closed_way,
    create_relation,
    changed_entities,
    run_rule,
)

__all__ = [
    'create_point',
    'create_way',
    'create_open_way',
    'create_closed_way',
    'create_relation',
    'changed_entities',
    'run_rule',
]
