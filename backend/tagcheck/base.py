"""
Base classes for the TagCheck validation framework.

To create a new validation rule:
1. Create a class that inherits from BaseRule
2. Implement the metadata property with RuleMetadata
3. Implement the validate() method
4. Add the class to ALL_RULES in rules/__init__.py
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Any, Dict, Sequence
import hashlib
import json

from .graph import Entity, EntityGraph
from .reference import ReferenceData
from .tags import TagClassifier


class Severity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"
    WARNING = "warning"


class Category(Enum):
    """Categories for grouping validation rules."""
    GEOMETRY = "geometry"
    RELATIONS = "relations"
    TAGGING = "tagging"
    PRIVACY = "privacy"
    NAMING = "naming"


@dataclass
class Fix:
    """A remediation the user could apply. Only declared, never executed here."""
    id: str
    title: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {'id': self.id, 'title': self.title, 'data': self.data}


@dataclass
class Issue:
    """
    A single validation finding.

    The id is derived from the type, subtype, optional hash and the sorted
    entity ids, so the same problem reported from two member entities of
    one structure gets the same id.
    """
    type: str
    severity: Severity
    entity_ids: List[str]
    subtype: str = ''
    message: str = ''
    hash: Optional[str] = None
    fixes: List[Fix] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    id: str = field(init=False)

    def __post_init__(self):
        self.entity_ids = list(self.entity_ids)
        self.id = make_issue_id(self.type, self.subtype, self.entity_ids, self.hash)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'type': self.type,
            'subtype': self.subtype,
            'severity': self.severity.value,
            'message': self.message,
            'entity_ids': list(self.entity_ids),
            'fixes': [f.to_dict() for f in self.fixes],
            'data': self.data,
        }


def make_issue_id(type: str, subtype: str, entity_ids: Sequence[str], hash: Optional[str] = None) -> str:
    parts = [type]
    if subtype:
        parts.append(subtype)
    if hash:
        parts.append(hash)
    parts.extend(sorted(entity_ids))
    return ':'.join(parts)


def tag_diff_hash(old_tags: Dict[str, str], new_tags: Dict[str, str]) -> str:
    """Short stable digest of the difference between two tag sets."""
    removed = sorted((k, v) for k, v in old_tags.items() if new_tags.get(k) != v)
    added = sorted((k, v) for k, v in new_tags.items() if old_tags.get(k) != v)
    payload = json.dumps({'-': removed, '+': added}, sort_keys=True)
    return hashlib.md5(payload.encode()).hexdigest()[:8]


@dataclass
class RuleMetadata:
    """Metadata for a validation rule, used for documentation."""
    id: str
    issue_type: str
    name: str
    name_de: str  # German name
    description: str
    description_de: str  # German description
    category: Category
    severity: Severity
    subtypes: List[str] = field(default_factory=list)
    requires_reference_data: Optional[str] = None
    example_valid: Optional[str] = None
    example_invalid: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'issue_type': self.issue_type,
            'name': self.name,
            'name_de': self.name_de,
            'description': self.description,
            'description_de': self.description_de,
            'category': self.category.value,
            'severity': self.severity.value,
            'subtypes': self.subtypes,
            'requires_reference_data': self.requires_reference_data,
            'example_valid': self.example_valid,
            'example_invalid': self.example_invalid,
        }


@dataclass
class ValidationContext:
    """Collaborators handed to every rule at construction."""
    reference: ReferenceData = field(default_factory=ReferenceData)
    classifier: TagClassifier = field(default_factory=TagClassifier)


class BaseRule(ABC):
    """
    Base class for all validation rules.

    To create a new rule:

    ```python
    class MyRule(BaseRule):
        @property
        def metadata(self) -> RuleMetadata:
            return RuleMetadata(
                id="R-XXX-01",
                issue_type="my_rule",
                name="My Rule",
                name_de="Meine Regel",
                description="What this rule checks",
                description_de="Was diese Regel prüft",
                category=Category.TAGGING,
                severity=Severity.WARNING,
            )

        def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
            issues = []
            # Your validation logic here
            return issues
    ```

    Rules are read-only observers of the graph. They never raise for odd
    input; when something they need is missing they return an empty list.
    """

    def __init__(self, context: Optional[ValidationContext] = None):
        self.context = context or ValidationContext()

    @property
    @abstractmethod
    def metadata(self) -> RuleMetadata:
        """Return rule metadata for documentation and UI."""
        pass

    @abstractmethod
    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        """
        Validate one entity against the graph snapshot.

        Args:
            entity: The entity to check
            graph: The snapshot the entity belongs to

        Returns:
            List of Issue objects
        """
        pass

    def is_applicable(self) -> bool:
        """
        Check if this rule can run right now.

        Rules that depend on reference data are not applicable until the
        data is loaded.
        """
        dataset = self.metadata.requires_reference_data
        if dataset is None:
            return True
        return self.context.reference.is_loaded(dataset)

    def create_issue(
        self,
        entity_ids: Sequence[str],
        message: str,
        subtype: str = '',
        severity: Optional[Severity] = None,
        hash: Optional[str] = None,
        fixes: Optional[List[Fix]] = None,
        **data,
    ) -> Issue:
        """Create an Issue carrying this rule's type and default severity."""
        return Issue(
            type=self.metadata.issue_type,
            subtype=subtype,
            severity=severity or self.metadata.severity,
            entity_ids=list(entity_ids),
            message=message,
            hash=hash,
            fixes=fixes or [],
            data=data,
        )
