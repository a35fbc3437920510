"""
Relation membership validation rules.
"""

from typing import List, Optional

from ..base import BaseRule, Category, Fix, Issue, RuleMetadata, Severity
from ..graph import Entity, EntityGraph, Member, Relation, Way


VALID_MULTIPOLYGON_ROLES = {'outer', 'inner'}


def is_missing_role(role: Optional[str]) -> bool:
    """None, empty and whitespace-only roles are all missing."""
    return not role or not role.strip()


class MissingRoleRule(BaseRule):
    """Checks that members of multipolygons are marked outer or inner."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="R-REL-01",
            issue_type="missing_role",
            name="Multipolygon Member Role",
            name_de="Rolle in Multipolygon",
            description="Every member of a multipolygon relation needs the role outer or inner",
            description_de="Jedes Mitglied einer Multipolygon-Relation braucht die Rolle outer oder inner",
            category=Category.RELATIONS,
            severity=Severity.WARNING,
            example_valid="Way in type=multipolygon with role 'outer'",
            example_invalid="Way in type=multipolygon with role '' or '   '",
        )

    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        issues = []

        if isinstance(entity, (Way, Relation)):
            for relation in graph.parent_relations(entity):
                if not relation.is_multipolygon():
                    continue
                for index, member in relation.indexed_members():
                    if member.id == entity.id and self._has_bad_role(member):
                        issues.append(self._make_issue(entity, relation, member, index))

        if isinstance(entity, Relation) and entity.is_multipolygon():
            for index, member in entity.indexed_members():
                if member.id == entity.id:
                    continue
                child = graph.get_entity(member.id)
                if not isinstance(child, (Way, Relation)):
                    # dangling reference or node member
                    continue
                if self._has_bad_role(member):
                    issues.append(self._make_issue(child, entity, member, index))

        return issues

    @staticmethod
    def _has_bad_role(member: Member) -> bool:
        if is_missing_role(member.role):
            return True
        return member.role.strip() not in VALID_MULTIPOLYGON_ROLES

    def _make_issue(self, member_entity: Entity, relation: Relation, member: Member, index: int) -> Issue:
        if is_missing_role(member.role):
            message = f"{member_entity.id} has no role within {relation.id}"
        else:
            message = f"{member_entity.id} has the role '{member.role.strip()}' within {relation.id}"

        return self.create_issue(
            [relation.id, member_entity.id],
            message,
            hash=str(index),
            fixes=[
                Fix('set_role_outer', "Use the role 'outer'", {'role': 'outer', 'index': index}),
                Fix('set_role_inner', "Use the role 'inner'", {'role': 'inner', 'index': index}),
                Fix('remove_from_relation', "Remove from the relation", {'index': index}),
            ],
            member_index=index,
            role=member.role,
        )
