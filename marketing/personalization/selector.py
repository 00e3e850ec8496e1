"""Pick the content variants a viewer sees for one building."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from buildings.schema import BuildingRecord
from marketing.personalization.schema import PersonalizationRule, VariantSet, ViewerContext

log = logging.getLogger("marketing.personalization.selector")


def first_match(
    rules: Iterable[PersonalizationRule],
    slot: str,
    record_id: str,
    context: ViewerContext,
) -> Optional[PersonalizationRule]:
    """First rule in table order that fills ``slot`` for this building and context."""
    for rule in rules:
        if rule.slot == slot and rule.matches(record_id, context):
            return rule
    return None


def select(
    record: BuildingRecord,
    context: ViewerContext | None = None,
    rules: Iterable[PersonalizationRule] = (),
) -> VariantSet:
    """Build the variant overlay for ``record`` as seen from ``context``.

    Slots without a matching rule carry the record's own tagline and
    key features unchanged.
    """
    context = context or ViewerContext()
    rules = tuple(rules)

    tagline_rule = first_match(rules, "tagline", record.id, context)
    highlights_rule = first_match(rules, "highlights", record.id, context)

    variants = VariantSet(
        tagline=tagline_rule.tagline if tagline_rule else record.overview.tagline,
        highlights=(
            list(highlights_rule.highlights) if highlights_rule
            else list(record.overview.key_features)
        ),
        sources={
            "tagline": tagline_rule.id if tagline_rule else None,
            "highlights": highlights_rule.id if highlights_rule else None,
        },
    )
    log.debug("Variants for %s (%s): %s", record.id, context.key, variants.sources)
    return variants
