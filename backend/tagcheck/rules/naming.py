"""
Name validation rules, backed by the name-suggestion index.
"""

import re
from typing import List, Mapping

from ..base import BaseRule, Category, Fix, Issue, RuleMetadata, Severity
from ..graph import Entity, EntityGraph
from ..nsi import NameSuggestionIndex, simplify_name
from ..tags import split_values


# Defining keys whose key or value is never a real name
KEYS_TO_TEST_FOR_GENERIC_VALUES = [
    'aerialway',
    'aeroway',
    'amenity',
    'building',
    'craft',
    'highway',
    'leisure',
    'man_made',
    'office',
    'railway',
    'shop',
    'tourism',
    'waterway',
]

WIKIDATA_KEYS = {'wikidata', 'brand:wikidata', 'operator:wikidata'}

NAME_KEY = re.compile(r'^name(?::([a-zA-Z_-]+))?$')


def name_matches_raw_tag(name: str, tags: Mapping[str, str]) -> bool:
    """True when the name just repeats a defining key or value, e.g. 'Amenity'."""
    lowercase_name = simplify_name(name).lower()
    for key in KEYS_TO_TEST_FOR_GENERIC_VALUES:
        value = tags.get(key)
        if not value:
            continue
        value = value.lower()
        if key == lowercase_name or value == lowercase_name or value.replace('_', ' ') == lowercase_name:
            return True
    return False


class SuspiciousNameRule(BaseRule):
    """Flags names that are generic words or that the mapper ruled out."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="R-NAME-01",
            issue_type="suspicious_name",
            name="Suspicious Name",
            name_de="Verdächtiger Name",
            description="Names must not be generic descriptions or match the not:name tag",
            description_de="Namen dürfen keine generischen Bezeichnungen sein oder dem not:name-Tag entsprechen",
            category=Category.NAMING,
            severity=Severity.WARNING,
            subtypes=['generic_name', 'not_name'],
            requires_reference_data='nsi',
            example_valid="shop=supermarket, name=Lou's",
            example_invalid="shop=supermarket, name=super mercado",
        )

    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        if not self.is_applicable():
            return []
        nsi = self.context.reference.name_suggestion_index()
        if nsi is None:
            return []

        tags = entity.tags
        # already matched to a known brand/operator
        if any(tags.get(key) for key in WIKIDATA_KEYS | nsi.main_tags):
            return []

        not_names = split_values(tags.get('not:name'))
        issues = []
        for key, value in tags.items():
            match = NAME_KEY.match(key)
            if not match or not value:
                continue
            lang = match.group(1)

            if value in not_names:
                issues.append(self._make_issue(entity, key, value, lang, 'not_name'))
            if self._is_generic_name(key, value, tags, nsi):
                issues.append(self._make_issue(entity, key, value, lang, 'generic_name'))
        return issues

    @staticmethod
    def _is_generic_name(key: str, value: str, tags: Mapping[str, str], nsi: NameSuggestionIndex) -> bool:
        if name_matches_raw_tag(value, tags):
            return True
        # the index only knows primary names
        return key == 'name' and nsi.is_generic_name(tags)

    def _make_issue(self, entity: Entity, key: str, value: str, lang: str, subtype: str) -> Issue:
        where = f" in {lang}" if lang else ""
        if subtype == 'not_name':
            message = f"{entity.id} has the name '{value}'{where}, which is listed in not:name"
            fix = Fix('remove_mistaken_name', "Remove the mistaken name", {'tags': [key]})
        else:
            message = f"{entity.id} has the suspicious name '{value}'{where}"
            fix = Fix('remove_generic_name', "Remove the generic name", {'tags': [key]})

        return self.create_issue(
            [entity.id],
            message,
            subtype=subtype,
            hash=f'{key}={value}',
            fixes=[fix],
            name_key=key,
            name=value,
        )
