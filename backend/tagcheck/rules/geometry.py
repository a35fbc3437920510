"""
Geometry validation rules: tags that do not fit the shape they are on.
"""

from typing import List

from ..base import BaseRule, Category, Fix, Issue, RuleMetadata, Severity
from ..graph import Entity, EntityGraph, Way
from ..tags import BOTH, LINE


class MismatchedGeometryRule(BaseRule):
    """Flags open ways carrying tags that describe an area."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="R-GEOM-01",
            issue_type="mismatched_geometry",
            name="Line Tagged as Area",
            name_de="Linie als Fläche getaggt",
            description="Open ways must not carry area tags unless another tag makes them valid as lines",
            description_de="Offene Wege dürfen keine Flächen-Tags tragen, ausser ein anderes Tag erlaubt Linien",
            category=Category.GEOMETRY,
            severity=Severity.WARNING,
            subtypes=['area_as_line'],
            example_valid="Closed way with building=yes",
            example_invalid="Open way with building=yes",
        )

    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        if not isinstance(entity, Way) or len(entity.nodes) < 2:
            return []

        classifier = self.context.classifier
        area_tag = classifier.tag_suggesting_area(entity.tags)
        if area_tag is None:
            return []

        classes = classifier.classes(entity.tags)
        explicit_area = entity.tags.get('area') == 'yes'
        closed = graph.is_closed_way(entity)

        # area=yes next to a line-only tag conflicts whatever the shape
        if explicit_area and LINE in classes:
            mismatched = True
        else:
            mismatched = not closed and not classes & {LINE, BOTH}
        if not mismatched:
            return []

        key, value = next(iter(area_tag.items()))
        fixes = []
        if not closed and len(entity.unique_nodes()) >= 3:
            fixes.append(Fix('close_way', "Close this line"))
        fixes.append(Fix('remove_tag', f"Remove {key}={value}", {'tags': [key]}))

        return [self.create_issue(
            [entity.id],
            f"{entity.id} should be a closed area based on the tag {key}={value}",
            subtype='area_as_line',
            hash=f'{key}={value}',
            fixes=fixes,
            area_tag=area_tag,
        )]
