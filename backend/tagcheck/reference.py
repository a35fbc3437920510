"""
Reference data used by the outdated_tags and suspicious_name rules.

Each dataset is either unloaded or loaded. Until a dataset is loaded the
accessors return empty values and the rules that depend on it report
nothing. Loading fires the registered listeners so a caller can re-run
validation once the data has arrived.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .errors import ReferenceDataError
from .nsi import NameSuggestionIndex

logger = logging.getLogger(__name__)


class Dataset(Enum):
    DEPRECATED = "deprecated"
    NSI = "nsi"


# File names looked up by load_directory()
DATA_FILES = {
    'deprecated': 'deprecated.json',
    'nsi_data': 'nsi_data.json',
    'nsi_generics': 'nsi_generics.json',
    'nsi_trees': 'nsi_trees.json',
}


@dataclass(frozen=True)
class DeprecatedTagRule:
    """An obsolete tag combination and its optional replacement."""
    old: Dict[str, str]
    replace: Optional[Dict[str, str]] = None

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> 'DeprecatedTagRule':
        if not isinstance(item, Mapping) or not isinstance(item.get('old'), Mapping) or not item['old']:
            raise ReferenceDataError('deprecated', f"rule needs a non-empty 'old' mapping: {item!r}")
        replace = item.get('replace')
        if replace is not None and not isinstance(replace, Mapping):
            raise ReferenceDataError('deprecated', f"'replace' must be a mapping: {item!r}")
        return cls(
            old={str(k): str(v) for k, v in item['old'].items()},
            replace={str(k): str(v) for k, v in replace.items()} if replace is not None else None,
        )

    def to_dict(self) -> dict:
        data = {'old': dict(self.old)}
        if self.replace is not None:
            data['replace'] = dict(self.replace)
        return data


Listener = Callable[[Dataset], None]


class ReferenceData:
    """Process-wide cache of reference datasets, handed to the rules that need it."""

    def __init__(self):
        self._deprecated: Optional[List[DeprecatedTagRule]] = None
        self._nsi: Optional[NameSuggestionIndex] = None
        self._listeners: List[Listener] = []

    def is_loaded(self, dataset: Union[Dataset, str]) -> bool:
        dataset = Dataset(dataset)
        if dataset == Dataset.DEPRECATED:
            return self._deprecated is not None
        return self._nsi is not None

    @property
    def status(self) -> Dict[str, bool]:
        return {d.value: self.is_loaded(d) for d in Dataset}

    def deprecated_tag_rules(self) -> List[DeprecatedTagRule]:
        """Deprecated-tag rules, empty until loaded."""
        return list(self._deprecated or [])

    def name_suggestion_index(self) -> Optional[NameSuggestionIndex]:
        return self._nsi

    def on_loaded(self, callback: Listener) -> None:
        """Register a callback fired with the dataset every time one is loaded."""
        self._listeners.append(callback)

    def _notify(self, dataset: Dataset) -> None:
        for callback in list(self._listeners):
            try:
                callback(dataset)
            except Exception:
                logger.exception("Reference data listener failed for %s", dataset.value)

    def load_deprecated(self, data: Any) -> None:
        """Load deprecated-tag rules from a list (or ``{"deprecated": [...]}``)."""
        if isinstance(data, Mapping):
            data = data.get('deprecated')
        if not isinstance(data, list):
            raise ReferenceDataError('deprecated', "expected a list of rules")

        self._deprecated = [DeprecatedTagRule.from_dict(item) for item in data]
        logger.info("Loaded %d deprecated tag rules", len(self._deprecated))
        self._notify(Dataset.DEPRECATED)

    def load_nsi(
        self,
        data: Mapping[str, Any],
        generics: Optional[Mapping[str, Any]] = None,
        trees: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._nsi = NameSuggestionIndex.from_dict(data, generics, trees)
        self._notify(Dataset.NSI)

    def load_directory(self, path: Union[str, Path]) -> Dict[str, bool]:
        """
        Load whatever reference files exist in a directory.

        Missing files leave their dataset unloaded.
        """
        path = Path(path)
        raw = {}
        for name, filename in DATA_FILES.items():
            file_path = path / filename
            if not file_path.exists():
                logger.debug("Reference file %s not found", file_path)
                continue
            try:
                with open(file_path, encoding='utf-8') as f:
                    raw[name] = json.load(f)
            except json.JSONDecodeError as e:
                raise ReferenceDataError(name, f"{file_path} is not valid JSON: {e}") from e

        if 'deprecated' in raw:
            self.load_deprecated(raw['deprecated'])
        if 'nsi_data' in raw:
            self.load_nsi(raw['nsi_data'], raw.get('nsi_generics'), raw.get('nsi_trees'))
        return self.status

    def clear(self) -> None:
        """Return every dataset to the unloaded state."""
        self._deprecated = None
        self._nsi = None
