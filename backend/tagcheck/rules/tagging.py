"""
Tagging validation rules: missing, vague and outdated tags.
"""

from typing import Dict, List, Mapping, Optional

from ..base import BaseRule, Category, Fix, Issue, RuleMetadata, Severity, tag_diff_hash
from ..graph import Entity, EntityGraph, Node, Relation, Way
from ..multipolygon import old_multipolygon_outer_member, old_multipolygon_outer_way
from ..reference import DeprecatedTagRule
from ..tags import is_interesting_key, split_values


# Keys that describe an attribute of a feature, not what the feature is
ATTRIBUTE_ONLY_KEYS = ('description', 'name', 'note', 'start_date', 'oneway')


def descriptive_keys(tags: Mapping[str, str]) -> List[str]:
    keys = []
    for key in tags:
        if key == 'area' or not is_interesting_key(key):
            continue
        if any(key == a or key.startswith(a + ':') for a in ATTRIBUTE_ONLY_KEYS):
            continue
        keys.append(key)
    return keys


class MissingTagRule(BaseRule):
    """Checks that features say what they are."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="R-TAG-01",
            issue_type="missing_tag",
            name="Missing Tags",
            name_de="Fehlende Tags",
            description="Features need at least one tag describing what they are; relations need a type",
            description_de="Objekte brauchen mindestens ein beschreibendes Tag; Relationen brauchen einen Typ",
            category=Category.TAGGING,
            severity=Severity.ERROR,
            subtypes=['any', 'descriptive', 'relation_type', 'highway_classification'],
            example_valid="leisure=park",
            example_invalid="name=Main Street, source=Bing",
        )

    MESSAGES = {
        'any': "{id} has no tags",
        'descriptive': "{id} has no descriptive tags",
        'relation_type': "{id} is a relation without a type",
        'highway_classification': "{id} is a road without a classification",
    }

    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        subtype = None

        # untagged vertices and relation members are fine
        is_vertex = isinstance(entity, Node) and bool(graph.parent_ways(entity))
        if not is_vertex and not graph.has_parent_relations(entity):
            if not entity.has_interesting_tags():
                subtype = 'any'
            elif not self._has_descriptive_tags(entity, graph):
                subtype = 'descriptive'
            elif isinstance(entity, Relation) and not entity.tags.get('type'):
                subtype = 'relation_type'

        # flag an unknown road even if it's a member of a relation
        if subtype is None and isinstance(entity, Way) and entity.tags.get('highway') == 'road':
            subtype = 'highway_classification'

        if subtype is None:
            return []

        can_delete = entity.is_new and subtype != 'highway_classification'
        severity = Severity.ERROR if can_delete else Severity.WARNING

        fixes = [Fix('select_preset', "Choose a feature type")]
        if can_delete:
            fixes.append(Fix('delete_feature', "Delete this feature"))

        return [self.create_issue(
            [entity.id],
            self.MESSAGES[subtype].format(id=entity.id),
            subtype=subtype,
            severity=severity,
            fixes=fixes,
        )]

    @staticmethod
    def _has_descriptive_tags(entity: Entity, graph: EntityGraph) -> bool:
        keys = descriptive_keys(entity.tags)
        if isinstance(entity, Relation) and len(keys) == 1 and entity.tags.get('type') == 'multipolygon':
            # only says it's a multipolygon; fine if the outer way carries the tags
            return old_multipolygon_outer_way(entity, graph) is not None
        return bool(keys)


def _old_value_matches(tags: Mapping[str, str], key: str, value: str) -> bool:
    current = tags.get(key)
    if not current:
        return False
    if value == '*' or value == current:
        return True
    values = split_values(current)
    return len(values) > 1 and value in values


def matching_deprecated_rules(tags: Mapping[str, str], rules: List[DeprecatedTagRule]) -> List[DeprecatedTagRule]:
    """Return the deprecated-tag rules whose whole ``old`` mapping matches ``tags``."""
    if not tags:
        return []

    matched = []
    for rule in rules:
        if rule.replace:
            # don't flag when the upgrade would overwrite existing data
            overwrites = any(
                tags.get(key) and key not in rule.old and value != '*' and value != tags[key]
                for key, value in rule.replace.items()
            )
            if overwrites:
                continue
        if all(_old_value_matches(tags, k, v) for k, v in rule.old.items()):
            matched.append(rule)
    return matched


def upgrade_tags(tags: Mapping[str, str], rules: List[DeprecatedTagRule]) -> Dict[str, str]:
    """
    Apply the replacements of the matched rules.

    ``*`` in a replacement keeps an existing value (other than ``no``) or
    writes ``yes``; ``$1`` carries over the value matched by a ``*`` in
    ``old``.
    """
    new_tags = dict(tags)
    for rule in rules:
        transfer_value: Optional[str] = None
        partial_keys = set()

        for key, old_value in rule.old.items():
            current = new_tags.get(key)
            if current is None:
                continue
            if old_value == '*':
                transfer_value = current
                del new_tags[key]
            elif current == old_value:
                del new_tags[key]
            else:
                remaining = [v for v in split_values(current) if v != old_value]
                if remaining:
                    new_tags[key] = ';'.join(remaining)
                    partial_keys.add(key)
                else:
                    del new_tags[key]

        for key, new_value in (rule.replace or {}).items():
            if new_value == '*':
                if new_tags.get(key) and new_tags[key] != 'no':
                    continue
                new_tags[key] = 'yes'
            elif new_value == '$1':
                if transfer_value is not None:
                    new_tags[key] = transfer_value
            elif key in partial_keys:
                new_tags[key] = ';'.join(split_values(new_tags[key]) + [new_value])
            else:
                new_tags[key] = new_value
    return new_tags


class OutdatedTagsRule(BaseRule):
    """Flags deprecated tags and multipolygons tagged the old way."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="R-TAG-02",
            issue_type="outdated_tags",
            name="Outdated Tags",
            name_de="Veraltete Tags",
            description="Detects deprecated tag combinations and multipolygon tags placed on the outer way",
            description_de="Erkennt veraltete Tag-Kombinationen und Multipolygon-Tags auf dem äusseren Weg",
            category=Category.TAGGING,
            severity=Severity.WARNING,
            subtypes=['deprecated_tags', 'old_multipolygon'],
            requires_reference_data='deprecated',
            example_valid="ford=yes",
            example_invalid="highway=ford",
        )

    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        if not self.is_applicable():
            return []

        issues = self._old_multipolygon_issues(entity, graph)
        if not issues:
            issues = self._deprecated_tag_issues(entity)
        return issues

    def _old_multipolygon_issues(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        if isinstance(entity, Relation):
            relation, outer_way = entity, old_multipolygon_outer_way(entity, graph)
        elif isinstance(entity, Way):
            relation, outer_way = old_multipolygon_outer_member(entity, graph), entity
        else:
            return []

        if relation is None or outer_way is None:
            return []

        moved = {k: v for k, v in outer_way.tags.items() if k != 'area'}
        return [self.create_issue(
            [outer_way.id, relation.id],
            f"{relation.id} has misplaced tags on its outer way {outer_way.id}",
            subtype='old_multipolygon',
            fixes=[Fix('move_tags', "Move the tags to the relation", {'tags': moved})],
        )]

    def _deprecated_tag_issues(self, entity: Entity) -> List[Issue]:
        tags = dict(entity.tags)
        matched = matching_deprecated_rules(tags, self.context.reference.deprecated_tag_rules())
        if not matched:
            return []

        new_tags = upgrade_tags(tags, matched)
        if any(rule.replace for rule in matched):
            fix = Fix('upgrade_tags', "Upgrade the tags", {'tags': new_tags})
        else:
            fix = Fix('remove_tags', "Remove the deprecated tags", {'tags': new_tags})

        return [self.create_issue(
            [entity.id],
            f"{entity.id} has outdated tags",
            subtype='deprecated_tags',
            hash=tag_diff_hash(tags, new_tags),
            fixes=[fix],
            deprecated=[rule.to_dict() for rule in matched],
            upgraded_tags=new_tags,
        )]
