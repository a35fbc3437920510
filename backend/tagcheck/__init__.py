"""
TagCheck Validation Framework

A modular Python framework for validating edits to a tagged feature graph
(nodes, ways and relations with key/value tags): mismatched geometry,
missing roles and tags, outdated tags, private data and suspicious names.

Usage:
    from tagcheck import ValidationContext, ValidationEngine, create_default_registry
    from tagcheck.graph import EntityGraph

    context = ValidationContext()
    context.reference.load_directory('data/')

    registry = create_default_registry(context)
    engine = ValidationEngine(registry, context.reference)

    base = EntityGraph.from_dict(original_payload)
    head = EntityGraph.from_dict(edited_payload)
    result = engine.validate_changes(base, head)

    print(f"Issues: {len(result.unique_issues())}")
    print(f"Errors: {result.error_count}")
    print(f"Warnings: {result.warning_count}")
"""

from typing import Optional

from .base import (
    BaseRule,
    Fix,
    Issue,
    RuleMetadata,
    ValidationContext,
    Category,
    Severity,
)

from .engine import (
    RuleRegistry,
    ValidationEngine,
    ValidationResult,
)

from .errors import TagCheckError, GraphPayloadError, ReferenceDataError
from .graph import EntityGraph, Node, Way, Relation, Member
from .reference import ReferenceData
from .rules import ALL_RULES

__version__ = "1.0.0"


def create_default_registry(context: Optional[ValidationContext] = None) -> RuleRegistry:
    """
    Create a rule registry with all default validation rules.

    Returns:
        RuleRegistry with all built-in rules registered
    """
    context = context or ValidationContext()
    registry = RuleRegistry()

    for rule_class in ALL_RULES:
        registry.register(rule_class(context))

    return registry


__all__ = [
    # Base classes
    'BaseRule',
    'Fix',
    'Issue',
    'RuleMetadata',
    'ValidationContext',
    'Category',
    'Severity',
    # Engine
    'RuleRegistry',
    'ValidationEngine',
    'ValidationResult',
    # Graph and reference data
    'EntityGraph',
    'Node',
    'Way',
    'Relation',
    'Member',
    'ReferenceData',
    # Errors
    'TagCheckError',
    'GraphPayloadError',
    'ReferenceDataError',
    # Factory
    'create_default_registry',
]
