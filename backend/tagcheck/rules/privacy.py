"""
Privacy validation rules.
"""

from typing import List

from ..base import BaseRule, Category, Fix, Issue, RuleMetadata, Severity
from ..graph import Entity, EntityGraph


# Buildings assumed to be private dwellings
PRIVATE_BUILDING_VALUES = {
    'detached',
    'farm',
    'house',
    'houseboat',
    'residential',
    'semidetached_house',
    'static_caravan',
}

# ...unless one of these keys says the place is open to the public
PUBLIC_KEYS = {'amenity', 'craft', 'historic', 'leisure', 'office', 'shop', 'tourism'}

# Tags that may contain personally identifying information
PERSONAL_TAGS = {'contact:email', 'contact:fax', 'contact:phone', 'email', 'fax', 'phone'}


class PrivateDataRule(BaseRule):
    """Flags contact details attached to private homes."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="R-PRIV-01",
            issue_type="private_data",
            name="Private Contact Data",
            name_de="Private Kontaktdaten",
            description="Residential buildings should not carry phone numbers, email or fax addresses",
            description_de="Wohngebäude sollten keine Telefonnummern, E-Mail- oder Faxadressen tragen",
            category=Category.PRIVACY,
            severity=Severity.WARNING,
            example_valid="building=house, tourism=guest_house, phone=...",
            example_invalid="building=house, phone=...",
        )

    def validate(self, entity: Entity, graph: EntityGraph) -> List[Issue]:
        tags = entity.tags
        if tags.get('building') not in PRIVATE_BUILDING_VALUES:
            return []
        if any(key in PUBLIC_KEYS for key in tags):
            return []

        personal = sorted(key for key in tags if key in PERSONAL_TAGS)
        if not personal:
            return []

        fix_id = 'remove_tag' if len(personal) == 1 else 'remove_tags'
        return [self.create_issue(
            [entity.id],
            f"{entity.id} might contain private contact information",
            hash=','.join(personal),
            fixes=[Fix(fix_id, "Remove private data", {'tags': personal})],
            personal_tags=personal,
        )]
