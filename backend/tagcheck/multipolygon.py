"""
Helpers for old-style multipolygons, where the feature tags sit on the
single outer way instead of on the relation.
"""

from typing import Optional

from .graph import Entity, EntityGraph, Relation, Way
from .tags import interesting_keys


def is_outer_role(role: Optional[str]) -> bool:
    """An unset role counts as outer."""
    return not role or role == 'outer'


def old_multipolygon_outer_member(entity: Entity, graph: EntityGraph) -> Optional[Relation]:
    """
    Return the relation if ``entity`` is the tagged sole outer way of a
    multipolygon whose only interesting tag is ``type``.
    """
    if not isinstance(entity, Way) or not entity.has_interesting_tags():
        return None

    parents = graph.parent_relations(entity)
    if len(parents) != 1:
        return None

    parent = parents[0]
    if not parent.is_multipolygon() or len(interesting_keys(parent.tags)) > 1:
        return None

    for member in parent.members:
        if member.id == entity.id:
            if member.role and member.role != 'outer':
                return None
        elif is_outer_role(member.role):
            # More than one outer: not a simple multipolygon
            return None
    return parent


def old_multipolygon_outer_way(entity: Entity, graph: EntityGraph) -> Optional[Way]:
    """The relation-side view of old_multipolygon_outer_member()."""
    if not isinstance(entity, Relation) or not entity.is_multipolygon():
        return None
    if len(interesting_keys(entity.tags)) > 1:
        return None

    outer = None
    for member in entity.members:
        if not is_outer_role(member.role):
            continue
        if outer is not None or member.type != 'way':
            return None
        way = graph.get_entity(member.id)
        if not isinstance(way, Way) or not way.has_interesting_tags():
            return None
        outer = way
    return outer
