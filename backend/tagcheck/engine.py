"""
Validation engine - orchestrates rule execution and aggregates results.
"""

from typing import List, Dict, Optional, Sequence
from dataclasses import dataclass, field
from collections import defaultdict
import logging

import pandas as pd

from .base import BaseRule, Category, Issue, Severity
from .graph import EntityGraph, EntityRef
from .reference import ReferenceData

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Central registry for all validation rules, kept in registration order."""

    def __init__(self):
        self._rules: Dict[str, BaseRule] = {}

    def register(self, rule: BaseRule) -> None:
        """Register a rule instance."""
        self._rules[rule.metadata.id] = rule

    def get_rule(self, rule_id: str) -> Optional[BaseRule]:
        """Get a specific rule by ID or by the issue type it emits."""
        rule = self._rules.get(rule_id)
        if rule is None:
            rule = self.get_rule_by_type(rule_id)
        return rule

    def get_rule_by_type(self, issue_type: str) -> Optional[BaseRule]:
        for rule in self._rules.values():
            if rule.metadata.issue_type == issue_type:
                return rule
        return None

    def get_all_rules(self) -> List[BaseRule]:
        """Get all registered rules."""
        return list(self._rules.values())

    def get_rules_by_category(self, category: Category) -> List[BaseRule]:
        """Get all rules in a category."""
        return [r for r in self._rules.values()
                if r.metadata.category == category]

    def get_documentation(self) -> List[dict]:
        """Generate documentation for all rules."""
        return [
            r.metadata.to_dict()
            for r in sorted(self._rules.values(), key=lambda x: x.metadata.id)
        ]


@dataclass
class ValidationResult:
    """Complete result of a validation run."""
    total_entities: int
    issues: List[Issue] = field(default_factory=list)
    rules_executed: List[str] = field(default_factory=list)
    rules_skipped: List[str] = field(default_factory=list)
    rules_failed: List[str] = field(default_factory=list)
    reference_data_loaded: Dict[str, bool] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == Severity.WARNING)

    @property
    def flagged_entities(self) -> int:
        return len({eid for i in self.issues for eid in i.entity_ids})

    def unique_issues(self) -> List[Issue]:
        """Issues merged by id, keeping the first occurrence."""
        seen: Dict[str, Issue] = {}
        for issue in self.issues:
            seen.setdefault(issue.id, issue)
        return list(seen.values())

    def get_issues_by_type(self) -> Dict[str, int]:
        """Group unique issue counts by issue type."""
        counts = defaultdict(int)
        for issue in self.unique_issues():
            counts[issue.type] += 1
        return dict(counts)

    def get_issues_by_subtype(self) -> Dict[str, int]:
        counts = defaultdict(int)
        for issue in self.unique_issues():
            key = f"{issue.type}/{issue.subtype}" if issue.subtype else issue.type
            counts[key] += 1
        return dict(counts)

    def get_issues_for_entity(self, entity_id: str) -> List[Issue]:
        return [i for i in self.unique_issues() if entity_id in i.entity_ids]

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten the unique issues into one row per issue."""
        rows = [
            {
                'id': i.id,
                'type': i.type,
                'subtype': i.subtype,
                'severity': i.severity.value,
                'entity_ids': ', '.join(i.entity_ids),
                'message': i.message,
                'fixes': ', '.join(f.id for f in i.fixes),
            }
            for i in self.unique_issues()
        ]
        columns = ['id', 'type', 'subtype', 'severity', 'entity_ids', 'message', 'fixes']
        return pd.DataFrame(rows, columns=columns)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        unique = self.unique_issues()
        return {
            'total_entities': self.total_entities,
            'issue_count': len(unique),
            'error_count': sum(1 for i in unique if i.severity == Severity.ERROR),
            'warning_count': sum(1 for i in unique if i.severity == Severity.WARNING),
            'flagged_entities': self.flagged_entities,
            'issues': [i.to_dict() for i in self.issues],
            'issues_by_type': self.get_issues_by_type(),
            'issues_by_subtype': self.get_issues_by_subtype(),
            'rules_executed': self.rules_executed,
            'rules_skipped': self.rules_skipped,
            'rules_failed': self.rules_failed,
            'reference_data_loaded': self.reference_data_loaded,
        }


class ValidationEngine:
    """
    Orchestrates validation rule execution.

    Usage:
        registry = create_default_registry(context)
        engine = ValidationEngine(registry, context.reference)

        issues = engine.run(changed_entities, graph)
        result = engine.validate(changed_entities, graph)
    """

    def __init__(self, registry: RuleRegistry, reference: Optional[ReferenceData] = None):
        self.registry = registry
        self.reference = reference

    def _select_rules(self, rule_ids: Optional[List[str]]) -> List[BaseRule]:
        if rule_ids:
            rules = [self.registry.get_rule(rid) for rid in rule_ids]
            return [r for r in rules if r is not None]
        return self.registry.get_all_rules()

    def run(
        self,
        entities: Sequence[EntityRef],
        graph: EntityGraph,
        rule_ids: Optional[List[str]] = None,
    ) -> List[Issue]:
        """
        Run every rule over every entity and concatenate the issues.

        Issues come out in entity order, then rule order within an entity.
        Duplicates by id are kept; use ValidationResult.unique_issues() to
        merge them.
        """
        return self.validate(entities, graph, rule_ids).issues

    def validate(
        self,
        entities: Sequence[EntityRef],
        graph: EntityGraph,
        rule_ids: Optional[List[str]] = None,
    ) -> ValidationResult:
        """
        Run validation rules against the given entities.

        Args:
            entities: Entities or entity ids, typically created + modified
            graph: The snapshot to validate against
            rule_ids: Optional list of specific rule IDs to run (None = all)

        Returns:
            ValidationResult with all issues and statistics
        """
        result = ValidationResult(total_entities=len(entities))
        if self.reference is not None:
            result.reference_data_loaded = self.reference.status

        rules = []
        for rule in self._select_rules(rule_ids):
            if rule.is_applicable():
                rules.append(rule)
                result.rules_executed.append(rule.metadata.id)
            else:
                logger.debug("Skipping %s, reference data not loaded", rule.metadata.id)
                result.rules_skipped.append(rule.metadata.id)

        for ref in entities:
            entity = graph.resolve(ref)
            if entity is None:
                logger.debug("Entity %s not in graph, skipping", ref if isinstance(ref, str) else ref.id)
                continue

            for rule in rules:
                try:
                    result.issues.extend(rule.validate(entity, graph))
                except Exception:
                    # Log error but continue with other rules
                    logger.exception("Error executing rule %s on %s", rule.metadata.id, entity.id)
                    if rule.metadata.id not in result.rules_failed:
                        result.rules_failed.append(rule.metadata.id)

        logger.info(
            "Validated %d entities with %d rules: %d issues",
            result.total_entities, len(rules), len(result.issues),
        )
        return result

    def validate_changes(
        self,
        base: EntityGraph,
        head: EntityGraph,
        rule_ids: Optional[List[str]] = None,
    ) -> ValidationResult:
        """Validate the entities created or modified between two snapshots."""
        changes = head.diff(base)
        return self.validate(changes.changed, head, rule_ids)
