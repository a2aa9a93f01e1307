from binderkeep.models.catalog import FallbackCard, SetRef, SpeciesSummary
from binderkeep.models.collection import (
    REQUIRED_DOCUMENT_FIELDS,
    CardVariant,
    Collection,
    CollectionType,
    EditionFilter,
    MasterSetOptions,
    Slot,
    SlotCard,
    UserCard,
    card_slot_key,
)
from binderkeep.models.variant_rule import ListRule, RangeRule, VariantRule

__all__ = [
    "REQUIRED_DOCUMENT_FIELDS",
    "CardVariant",
    "Collection",
    "CollectionType",
    "EditionFilter",
    "FallbackCard",
    "ListRule",
    "MasterSetOptions",
    "RangeRule",
    "SetRef",
    "Slot",
    "SlotCard",
    "SpeciesSummary",
    "UserCard",
    "VariantRule",
    "card_slot_key",
]
