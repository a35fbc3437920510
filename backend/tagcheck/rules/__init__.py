"""
Validation rules package.

Contains all built-in validation rules organized by category.
"""

from .geometry import MismatchedGeometryRule
from .relations import MissingRoleRule
from .tagging import MissingTagRule, OutdatedTagsRule
from .privacy import PrivateDataRule
from .naming import SuspiciousNameRule

# All rules, in evaluation order
ALL_RULES = [
    MismatchedGeometryRule,
    MissingRoleRule,
    MissingTagRule,
    OutdatedTagsRule,
    PrivateDataRule,
    SuspiciousNameRule,
]

__all__ = [
    'MismatchedGeometryRule',
    'MissingRoleRule',
    'MissingTagRule',
    'OutdatedTagsRule',
    'PrivateDataRule',
    'SuspiciousNameRule',
    'ALL_RULES',
]
