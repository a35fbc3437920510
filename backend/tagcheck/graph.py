"""
Entity graph: an immutable snapshot of nodes, ways and relations.

The rules only read from a snapshot. Building a changed snapshot goes through
``EntityGraph.replace()``, which returns a new graph and leaves the old one
untouched, so two snapshots can be diffed to find what an edit created or
modified.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import GraphPayloadError
from .tags import DEFAULT_CLASSIFIER, TagClassifier, interesting_keys


ENTITY_TYPES = {'n': 'node', 'w': 'way', 'r': 'relation'}


def _freeze_tags(tags: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(tags or {}))


@dataclass(frozen=True)
class Entity:
    """Common fields of nodes, ways and relations."""
    id: str
    tags: Mapping[str, str] = field(default_factory=dict)
    version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'tags', _freeze_tags(self.tags))

    @property
    def type(self) -> str:
        raise NotImplementedError

    @property
    def is_new(self) -> bool:
        """True when the entity has never been uploaded."""
        return self.version is None

    def has_interesting_tags(self) -> bool:
        return bool(interesting_keys(self.tags))


@dataclass(frozen=True)
class Node(Entity):
    loc: Optional[Tuple[float, float]] = None

    @property
    def type(self) -> str:
        return 'node'


@dataclass(frozen=True)
class Way(Entity):
    nodes: Tuple[str, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'nodes', tuple(self.nodes))

    @property
    def type(self) -> str:
        return 'way'

    def is_closed(self) -> bool:
        return len(self.nodes) > 1 and self.nodes[0] == self.nodes[-1]

    def unique_nodes(self) -> List[str]:
        seen = []
        for node_id in self.nodes:
            if node_id not in seen:
                seen.append(node_id)
        return seen


@dataclass(frozen=True)
class Member:
    id: str
    type: str
    role: Optional[str] = None


@dataclass(frozen=True)
class Relation(Entity):
    members: Tuple[Member, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'members', tuple(self.members))

    @property
    def type(self) -> str:
        return 'relation'

    def is_multipolygon(self) -> bool:
        return self.tags.get('type') == 'multipolygon'

    def indexed_members(self) -> List[Tuple[int, Member]]:
        return list(enumerate(self.members))


EntityRef = Union[Entity, str]


@dataclass
class Changes:
    """Entities that differ between two snapshots."""
    created: List[Entity] = field(default_factory=list)
    modified: List[Entity] = field(default_factory=list)
    deleted: List[Entity] = field(default_factory=list)

    @property
    def changed(self) -> List[Entity]:
        """Modified then created entities, the set handed to validation."""
        return self.modified + self.created

    def to_dict(self) -> dict:
        return {
            'created': [e.id for e in self.created],
            'modified': [e.id for e in self.modified],
            'deleted': [e.id for e in self.deleted],
        }


class EntityGraph:
    """
    Read-only lookup of entities by id.

    Parent indexes (node -> ways, member -> relations) are computed once per
    snapshot.
    """

    def __init__(self, entities: Iterable[Entity] = ()):
        self._entities: Dict[str, Entity] = {}
        for entity in entities:
            self._entities[entity.id] = entity

        self._parent_ways: Dict[str, List[str]] = {}
        self._parent_relations: Dict[str, List[str]] = {}
        for entity in self._entities.values():
            if isinstance(entity, Way):
                for node_id in entity.unique_nodes():
                    self._parent_ways.setdefault(node_id, []).append(entity.id)
            elif isinstance(entity, Relation):
                for member in entity.members:
                    parents = self._parent_relations.setdefault(member.id, [])
                    if entity.id not in parents:
                        parents.append(entity.id)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def has_entity(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def resolve(self, ref: EntityRef) -> Optional[Entity]:
        """Turn an id or an entity into the entity held by this snapshot."""
        entity_id = ref if isinstance(ref, str) else ref.id
        return self._entities.get(entity_id)

    def is_closed_way(self, way: Way) -> bool:
        return way.is_closed()

    def child_nodes(self, way: Way) -> List[Node]:
        """Nodes of a way, skipping references missing from the snapshot."""
        nodes = []
        for node_id in way.nodes:
            node = self._entities.get(node_id)
            if isinstance(node, Node):
                nodes.append(node)
        return nodes

    def parent_ways(self, ref: EntityRef) -> List[Way]:
        entity_id = ref if isinstance(ref, str) else ref.id
        return [self._entities[i] for i in self._parent_ways.get(entity_id, [])]

    def parent_relations(self, ref: EntityRef) -> List[Relation]:
        entity_id = ref if isinstance(ref, str) else ref.id
        return [self._entities[i] for i in self._parent_relations.get(entity_id, [])]

    def has_parent_relations(self, ref: EntityRef) -> bool:
        return bool(self.parent_relations(ref))

    def is_area(self, way: Way, classifier: TagClassifier = DEFAULT_CLASSIFIER) -> bool:
        if way.tags.get('area') == 'yes':
            return True
        if not way.is_closed() or way.tags.get('area') == 'no':
            return False
        return classifier.tag_suggesting_area(way.tags) is not None

    def geometry(self, entity: Entity, classifier: TagClassifier = DEFAULT_CLASSIFIER) -> str:
        """Return 'point', 'vertex', 'line', 'area' or 'relation'."""
        if isinstance(entity, Node):
            return 'vertex' if self._parent_ways.get(entity.id) else 'point'
        if isinstance(entity, Way):
            return 'area' if self.is_area(entity, classifier) else 'line'
        if isinstance(entity, Relation) and entity.is_multipolygon():
            return 'area'
        return 'relation'

    def replace(self, *entities: Entity) -> 'EntityGraph':
        """Return a new snapshot with the given entities added or replaced."""
        merged = dict(self._entities)
        for entity in entities:
            merged[entity.id] = entity
        return EntityGraph(merged.values())

    def remove(self, *entity_ids: str) -> 'EntityGraph':
        return EntityGraph(e for e in self._entities.values() if e.id not in entity_ids)

    def diff(self, base: 'EntityGraph') -> Changes:
        """Compare this snapshot (head) against an earlier one."""
        changes = Changes()
        for entity in self._entities.values():
            previous = base.get_entity(entity.id)
            if previous is None:
                changes.created.append(entity)
            elif previous != entity:
                changes.modified.append(entity)
        for entity in base:
            if entity.id not in self._entities:
                changes.deleted.append(entity)
        return changes

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'EntityGraph':
        """
        Build a snapshot from a JSON-style payload.

        Accepts either ``{"entities": [...]}`` where each entry carries a
        ``type``, or separate ``nodes`` / ``ways`` / ``relations`` lists.
        """
        if not isinstance(payload, Mapping):
            raise GraphPayloadError("payload must be an object")

        raw = []
        entities = payload.get('entities') or []
        if not isinstance(entities, list):
            raise GraphPayloadError("'entities' must be a list")
        raw.extend(entities)
        for entity_type in ('node', 'way', 'relation'):
            items = payload.get(entity_type + 's') or []
            if not isinstance(items, list):
                raise GraphPayloadError(f"'{entity_type}s' must be a list")
            for item in items:
                if isinstance(item, Mapping):
                    item = {'type': entity_type, **item}
                raw.append(item)

        return cls(entity_from_dict(item) for item in raw)


def entity_type_from_id(entity_id: str) -> Optional[str]:
    return ENTITY_TYPES.get(entity_id[:1]) if entity_id else None


def entity_from_dict(item: Mapping[str, Any]) -> Entity:
    if not isinstance(item, Mapping):
        raise GraphPayloadError("entity must be an object")

    entity_id = item.get('id')
    if not entity_id or not isinstance(entity_id, str):
        raise GraphPayloadError("entity is missing a string id")

    entity_type = item.get('type') or entity_type_from_id(entity_id)
    tags = item.get('tags') or {}
    if not isinstance(tags, Mapping):
        raise GraphPayloadError("tags must be an object", entity_id)
    tags = {str(k): str(v) for k, v in tags.items()}
    version = item.get('version')
    version = str(version) if version is not None else None

    if entity_type == 'node':
        loc = item.get('loc')
        if loc is not None:
            try:
                loc = (float(loc[0]), float(loc[1]))
            except (TypeError, ValueError, IndexError):
                raise GraphPayloadError(f"invalid loc {loc!r}", entity_id)
        return Node(id=entity_id, tags=tags, version=version, loc=loc)

    if entity_type == 'way':
        nodes = item.get('nodes') or []
        if not isinstance(nodes, list):
            raise GraphPayloadError("nodes must be a list", entity_id)
        return Way(id=entity_id, tags=tags, version=version, nodes=tuple(str(n) for n in nodes))

    if entity_type == 'relation':
        raw_members = item.get('members') or []
        if not isinstance(raw_members, list):
            raise GraphPayloadError("members must be a list", entity_id)
        members = []
        for raw_member in raw_members:
            if not isinstance(raw_member, Mapping) or not raw_member.get('id'):
                raise GraphPayloadError("relation member needs an id", entity_id)
            member_id = str(raw_member['id'])
            members.append(Member(
                id=member_id,
                type=raw_member.get('type') or entity_type_from_id(member_id) or 'way',
                role=str(raw_member['role']) if raw_member.get('role') is not None else None,
            ))
        return Relation(id=entity_id, tags=tags, version=version, members=tuple(members))

    raise GraphPayloadError(f"unknown entity type {entity_type!r}", entity_id)
