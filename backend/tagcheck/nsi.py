"""
Name-suggestion-index matcher.

Only the parts needed to tell whether a name is generic are modelled:
global generic-word patterns, per tag-path exclude patterns and the trees
(``brands``, ``operators``...) with the tag that marks an entity as already
matched to an item of that tree.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Pattern, Set

from .errors import ReferenceDataError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')


def simplify_name(name: str) -> str:
    """Trim and collapse whitespace; case is handled by the patterns."""
    return _WHITESPACE.sub(' ', name).strip()


def compile_patterns(patterns: Any, dataset: str) -> List[Pattern]:
    """Compile case-insensitive patterns, skipping ones that do not parse."""
    if patterns is None:
        return []
    if not isinstance(patterns, (list, tuple)):
        raise ReferenceDataError(dataset, "patterns must be a list")

    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(str(pattern), re.IGNORECASE))
        except re.error as e:
            logger.warning("Skipping invalid pattern %r in %s: %s", pattern, dataset, e)
    return compiled


@dataclass
class PathExclusions:
    """Exclude patterns of one category, e.g. ``brands/shop/supermarket``."""
    path: str
    generic: List[Pattern] = field(default_factory=list)
    named: List[Pattern] = field(default_factory=list)


@dataclass
class NameMatch:
    """Outcome of matching a name against the index."""
    match: str  # 'excludeGeneric' or 'excludeNamed'
    pattern: str
    kv: Optional[str] = None


class NameSuggestionIndex:
    """
    Compiled name-suggestion data.

    Categories are keyed by ``key/value`` (``shop/supermarket``); a category
    only counts when its tree is listed in ``trees``.
    """

    def __init__(
        self,
        generic_words: List[Pattern],
        categories: Dict[str, List[PathExclusions]],
        trees: Dict[str, Dict[str, Any]],
    ):
        self.generic_words = generic_words
        self.categories = categories
        self.trees = trees

    @property
    def main_tags(self) -> Set[str]:
        """Tags such as ``brand:wikidata`` that mark an already matched feature."""
        return {t['mainTag'] for t in self.trees.values() if t.get('mainTag')}

    @property
    def known_kvs(self) -> Set[str]:
        return set(self.categories)

    def gather_kvs(self, tags: Mapping[str, str]) -> List[str]:
        """Return the ``key/value`` pairs of the tags that the index knows."""
        kvs = []
        for key, value in tags.items():
            kv = f'{key}/{value}'
            if kv in self.categories and kv not in kvs:
                kvs.append(kv)
        return kvs

    def match(self, tags: Mapping[str, str], name: str) -> Optional[NameMatch]:
        """
        Match a name against the exclusion patterns for the entity's tags.

        Per-category patterns are tried first, generic before named; the
        first hit wins. Global generic words are only consulted when no
        category pattern matched.
        """
        kvs = self.gather_kvs(tags)
        if not kvs:
            return None

        simple = simplify_name(name)
        for kv in kvs:
            for exclusions in self.categories[kv]:
                for regex in exclusions.generic:
                    if regex.search(simple):
                        return NameMatch('excludeGeneric', regex.pattern, kv)
                for regex in exclusions.named:
                    if regex.search(simple):
                        return NameMatch('excludeNamed', regex.pattern, kv)

        for regex in self.generic_words:
            if regex.search(simple):
                return NameMatch('excludeGeneric', regex.pattern)
        return None

    def is_generic_name(self, tags: Mapping[str, str]) -> bool:
        name = tags.get('name')
        if not name:
            return False
        result = self.match(tags, name)
        return result is not None and result.match == 'excludeGeneric'

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        generics: Optional[Mapping[str, Any]] = None,
        trees: Optional[Mapping[str, Any]] = None,
    ) -> 'NameSuggestionIndex':
        """
        Build the index from the raw datasets.

        ``data`` is ``{"nsi": {path: {"properties": {"path", "exclude"}}}}``,
        ``generics`` is ``{"genericWords": [...]}`` and ``trees`` is
        ``{"trees": {name: {"mainTag": ...}}}``. The outer wrappers may be
        omitted.
        """
        if not isinstance(data, Mapping):
            raise ReferenceDataError('nsi_data', "expected an object")
        entries = data.get('nsi', data)
        if not isinstance(entries, Mapping):
            raise ReferenceDataError('nsi_data', "'nsi' must be an object")

        generics = generics or {}
        if not isinstance(generics, Mapping):
            raise ReferenceDataError('nsi_generics', "expected an object")
        generic_words = compile_patterns(generics.get('genericWords', []), 'nsi_generics')

        trees = trees or {}
        if not isinstance(trees, Mapping):
            raise ReferenceDataError('nsi_trees', "expected an object")
        tree_table = trees.get('trees', trees)
        if not isinstance(tree_table, Mapping):
            raise ReferenceDataError('nsi_trees', "'trees' must be an object")
        for name, tree in tree_table.items():
            if tree is not None and not isinstance(tree, Mapping):
                raise ReferenceDataError('nsi_trees', f"tree {name!r} must be an object")
        tree_table = {str(k): dict(v or {}) for k, v in tree_table.items()}

        categories: Dict[str, List[PathExclusions]] = {}
        for path, entry in entries.items():
            entry = entry or {}
            if not isinstance(entry, Mapping):
                raise ReferenceDataError(str(path), "category must be an object")
            properties = entry.get('properties') or {}
            if not isinstance(properties, Mapping):
                raise ReferenceDataError(str(path), "'properties' must be an object")
            path = properties.get('path') or path
            parts = str(path).split('/')
            if len(parts) < 3:
                logger.warning("Skipping name-suggestion category with bad path %r", path)
                continue
            tree, key, value = parts[0], parts[1], parts[2]
            if tree not in tree_table:
                logger.debug("Skipping %s, tree %r not loaded", path, tree)
                continue

            exclude = properties.get('exclude') or {}
            if not isinstance(exclude, Mapping):
                raise ReferenceDataError(str(path), "'exclude' must be an object")
            exclusions = PathExclusions(
                path=path,
                generic=compile_patterns(exclude.get('generic'), path),
                named=compile_patterns(exclude.get('named'), path),
            )
            categories.setdefault(f'{key}/{value}', []).append(exclusions)

        logger.info(
            "Name-suggestion index ready: %d categories, %d generic words, %d trees",
            len(categories), len(generic_words), len(tree_table),
        )
        return cls(generic_words, categories, tree_table)
