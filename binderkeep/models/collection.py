"""
Collection (binder) documents.

These models are the exact shape written to the remote collection store,
so they serialize with camelCase keys and keep unknown fields intact.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CollectionType(str, Enum):
    """Display type of a binder. Fixed at creation."""

    COLLECT_THEM_ALL = "collect_them_all"
    MASTER_DEX = "master_dex"
    MASTER_SET = "master_set"
    SINGLE_POKEMON = "single_pokemon"
    BY_SET = "by_set"
    CUSTOM = "custom"


class CardVariant(str, Enum):
    """Printing variant a slot card refers to."""

    NORMAL = "normal"
    REVERSE = "reverse"
    HOLO = "holo"
    FIRST_EDITION = "firstEdition"
    W_PROMO = "wPromo"
    MASTER_BALL = "masterBall"


class EditionFilter(str, Enum):
    FIRST_EDITION_ONLY = "1stEditionOnly"
    UNLIMITED_ONLY = "unlimitedOnly"
    ALL = "all"


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class SlotCard(_Document):
    """Reference to a catalog card and the variant the user owns."""

    card_id: str
    variant: CardVariant = CardVariant.NORMAL
    language: str | None = None


class Slot(_Document):
    """
    One position in a binder.

    For dex-style binders the key is a dex number or form key; for
    per-printing binders it is "{cardId}-{variant}".
    """

    key: str
    card: SlotCard | None = None


class MasterSetOptions(_Document):
    """Switches for master-set binders. All true is the Grandmaster Collection."""

    regional_forms: bool | None = None
    variations: bool | None = None
    variation_groups: list[str] | None = None
    megas: bool | None = None
    gmax: bool | None = None


class UserCard(_Document):
    """Card the user typed in by hand (not from the catalog)."""

    name: str
    set_name: str
    local_id: str | None = None
    slot_key: str | None = None
    variant: CardVariant | None = None


class Collection(_Document):
    """A binder owned by one user."""

    id: str
    name: str
    type: CollectionType
    slots: list[Slot] = Field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    single_pokemon_dex_id: int | None = None
    single_pokemon_name: str | None = None
    include_regional_forms: bool | None = None
    languages: list[str] | None = None
    master_set_options: MasterSetOptions | None = None
    edition_filter: EditionFilter | None = None
    set_id: str | None = None
    set_name: str | None = None
    set_symbol: str | None = None
    custom_pokemon_ids: list[int] | None = None
    custom_pokemon_names: list[str] | None = None
    binder_color: str | None = None
    user_cards: dict[str, UserCard] | None = None

    @field_validator("id")
    @classmethod
    def _single_path_segment(cls, value: str) -> str:
        """Ids become the last segment of a document path."""
        if not value or "/" in value:
            raise ValueError("Collection id must be non-empty and must not contain '/'")
        return value

    def to_document(self) -> dict:
        """Serialize for the document store (camelCase, no null fields)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def get_slot(self, key: str) -> Slot | None:
        """Return the slot with `key`, or None."""
        for slot in self.slots:
            if slot.key == key:
                return slot
        return None

    def get_slot_card(self, key: str) -> SlotCard | None:
        """Return the card in slot `key`, or None if empty or missing."""
        slot = self.get_slot(key)
        return slot.card if slot else None


REQUIRED_DOCUMENT_FIELDS = ("id", "name", "slots")


def card_slot_key(card_id: str, variant: CardVariant) -> str:
    """Slot key for a specific card and variant."""
    return f"{card_id}-{variant.value}"
