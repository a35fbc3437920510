"""
Tag vocabulary shared by the validation rules.

Knows which keys are bookkeeping only, which tags imply an area, which
ones only make sense on a line and which are valid on both.
"""

from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Set


# Keys that carry provenance, never meaning
UNINTERESTING_KEYS = frozenset({
    'attribution',
    'created_by',
    'odbl',
    'source',
})
UNINTERESTING_PREFIXES = ('odbl:', 'source:', 'tiger:')

LIFECYCLE_PREFIXES = (
    'abandoned:',
    'construction:',
    'demolished:',
    'destroyed:',
    'disused:',
    'planned:',
    'proposed:',
    'razed:',
    'removed:',
    'was:',
)

# Tag classes returned by TagClassifier.classify()
AREA = 'area'
LINE = 'line'
BOTH = 'both'

# key -> values for which the key does NOT imply an area
DEFAULT_AREA_KEYS: Dict[str, Set[str]] = {
    'aeroway': {'jet_bridge', 'parking_position', 'runway', 'taxiway'},
    'amenity': {'bench'},
    'area:highway': set(),
    'building': set(),
    'building:part': set(),
    'club': set(),
    'craft': set(),
    'golf': {'cartpath', 'hole', 'path'},
    'healthcare': set(),
    'historic': {'citywalls'},
    'landuse': set(),
    'leisure': {'slipway', 'track'},
    'man_made': {'breakwater', 'cutline', 'embankment', 'groyne', 'pipeline'},
    'military': {'trench'},
    'natural': {'arete', 'cliff', 'coastline', 'earth_bank', 'ridge', 'tree_row', 'valley'},
    'office': set(),
    'place': set(),
    'power': {'cable', 'line', 'minor_line'},
    'shop': set(),
    'tourism': {'artwork'},
}

# key/value pairs that imply an area although the key normally does not
AREA_KEY_EXCEPTIONS: Dict[str, Set[str]] = {
    'amenity': {'bicycle_parking'},
    'highway': {'elevator', 'rest_area', 'services'},
    'public_transport': {'platform'},
    'railway': {'platform', 'roundhouse', 'station', 'traverser', 'turntable', 'ventilation_shaft', 'wash'},
    'waterway': {'dam'},
}

LINE_TAGS: Dict[str, Set[str]] = {
    'barrier': {
        'cable_barrier', 'city_wall', 'ditch', 'fence', 'guard_rail', 'handrail',
        'hedge', 'jersey_barrier', 'kerb', 'retaining_wall', 'wall',
    },
    'highway': {
        'bridleway', 'bus_guideway', 'busway', 'construction', 'corridor', 'cycleway',
        'footway', 'living_street', 'motorway', 'motorway_link', 'path', 'primary',
        'primary_link', 'raceway', 'residential', 'road', 'secondary', 'secondary_link',
        'service', 'steps', 'tertiary', 'tertiary_link', 'track', 'trunk', 'trunk_link',
        'unclassified',
    },
    'man_made': {'breakwater', 'cutline', 'embankment', 'groyne', 'pipeline'},
    'natural': {'arete', 'cliff', 'coastline', 'earth_bank', 'ridge', 'tree_row'},
    'power': {'cable', 'line', 'minor_line'},
    'railway': {
        'abandoned', 'disused', 'funicular', 'light_rail', 'miniature', 'monorail',
        'narrow_gauge', 'preserved', 'rail', 'subway', 'tram',
    },
    'waterway': {'canal', 'ditch', 'drain', 'river', 'stream'},
}

# '*' means every value of the key is valid as a line and as an area
DUAL_USE_TAGS: Dict[str, Set[str]] = {
    'attraction': {'*'},
    'historic': {'*'},
    'man_made': {'*'},
    'tourism': {'attraction'},
    'waterway': {'weir'},
}


def is_interesting_key(key: str) -> bool:
    """Return False for bookkeeping keys such as ``created_by`` or ``source:*``."""
    if key in UNINTERESTING_KEYS:
        return False
    return not key.startswith(UNINTERESTING_PREFIXES)


def interesting_keys(tags: Mapping[str, str]) -> list:
    return [k for k in tags if is_interesting_key(k)]


def remove_lifecycle_prefix(key: str) -> str:
    for prefix in LIFECYCLE_PREFIXES:
        if key.startswith(prefix):
            return key[len(prefix):]
    return key


def split_values(value: Optional[str]) -> list:
    """Split a semicolon separated tag value, dropping empty segments."""
    if not value:
        return []
    return [v.strip() for v in value.split(';') if v.strip()]


class TagClassifier:
    """
    Classifies tags by the geometry they imply.

    The area-key registry is per instance so a caller can install its own
    vocabulary (for instance one derived from preset data) without touching
    module state.
    """

    def __init__(
        self,
        area_keys: Optional[Mapping[str, Iterable[str]]] = None,
        area_exceptions: Optional[Mapping[str, Iterable[str]]] = None,
        line_tags: Optional[Mapping[str, Iterable[str]]] = None,
        dual_use_tags: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self.area_keys = _freeze(DEFAULT_AREA_KEYS if area_keys is None else area_keys)
        self.area_exceptions = _freeze(AREA_KEY_EXCEPTIONS if area_exceptions is None else area_exceptions)
        self.line_tags = _freeze(LINE_TAGS if line_tags is None else line_tags)
        self.dual_use_tags = _freeze(DUAL_USE_TAGS if dual_use_tags is None else dual_use_tags)

    def with_area_keys(self, area_keys: Mapping[str, Iterable[str]]) -> 'TagClassifier':
        """Return a copy of this classifier using a different area-key registry."""
        return TagClassifier(
            area_keys=area_keys,
            area_exceptions=self.area_exceptions,
            line_tags=self.line_tags,
            dual_use_tags=self.dual_use_tags,
        )

    def classify(self, key: str, value: str) -> Optional[str]:
        """
        Return AREA, LINE, BOTH or None for a single tag.

        Unknown vocabulary has no implication.
        """
        key = remove_lifecycle_prefix(key)
        if not value or value == 'no':
            return None
        if value in self.line_tags.get(key, ()):
            return LINE
        dual = self.dual_use_tags.get(key, ())
        if '*' in dual or value in dual:
            return BOTH
        if key in self.area_keys and value not in self.area_keys[key]:
            return AREA
        if value in self.area_exceptions.get(key, ()):
            return AREA
        return None

    def tag_suggesting_area(self, tags: Mapping[str, str]) -> Optional[Dict[str, str]]:
        """Return the first tag that implies an area, or None."""
        if tags.get('area') == 'yes':
            return {'area': 'yes'}
        if tags.get('area') == 'no':
            return None
        for key, value in tags.items():
            if key == 'area':
                continue
            if self.classify(key, value) == AREA:
                return {key: value}
        return None

    def classes(self, tags: Mapping[str, str]) -> Set[str]:
        """Return the set of classes implied by all tags of an entity."""
        found = set()
        for key, value in tags.items():
            if key == 'area':
                continue
            cls = self.classify(key, value)
            if cls:
                found.add(cls)
        return found


def _freeze(table: Mapping[str, Iterable[str]]) -> Dict[str, FrozenSet[str]]:
    return {k: frozenset(v) for k, v in table.items()}


DEFAULT_CLASSIFIER = TagClassifier()
