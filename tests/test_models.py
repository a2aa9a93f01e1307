"""Tests for collection and catalog models."""

import pytest

from binderkeep.models.catalog import FallbackCard, SetRef, SpeciesSummary
from binderkeep.models.collection import (
    CardVariant,
    Collection,
    CollectionType,
    MasterSetOptions,
    Slot,
    SlotCard,
    card_slot_key,
)


class TestCollection:
    def test_to_document_camel_case(self, make_collection, sample_slot: Slot) -> None:
        """Documents use camelCase keys and omit unset optional fields."""
        collection = make_collection("c1", slots=[sample_slot])
        collection.master_set_options = MasterSetOptions(regional_forms=True)

        document = collection.to_document()

        assert document["createdAt"] == 1_700_000_000_000
        assert document["masterSetOptions"] == {"regionalForms": True}
        assert document["slots"] == [{"key": "25", "card": {"cardId": "base1-58", "variant": "normal"}}]
        assert "setId" not in document
        assert "binderColor" not in document

    def test_parses_camel_case_and_keeps_unknown_fields(self) -> None:
        """Documents written by other clients load without losing fields."""
        collection = Collection.model_validate(
            {
                "id": "c1",
                "name": "Base",
                "type": "by_set",
                "slots": [],
                "setId": "base1",
                "futureField": {"x": 1},
            }
        )

        assert collection.set_id == "base1"
        assert collection.to_document()["futureField"] == {"x": 1}

    def test_rejects_unknown_type(self) -> None:
        """Collection type must be one of the known binder types."""
        with pytest.raises(ValueError):
            Collection.model_validate({"id": "c1", "name": "X", "type": "shoebox", "slots": []})

    def test_slot_lookup(self, make_collection) -> None:
        """Empty slots exist but hold no card."""
        slots = [Slot(key="1"), Slot(key="4", card=SlotCard(card_id="base1-46"))]
        collection = make_collection("c1", collection_type=CollectionType.MASTER_DEX, slots=slots)

        assert collection.get_slot("1") is not None
        assert collection.get_slot_card("1") is None
        assert collection.get_slot_card("4").card_id == "base1-46"
        assert collection.get_slot("999") is None

    def test_card_slot_key(self) -> None:
        assert card_slot_key("sv03.5-025", CardVariant.REVERSE) == "sv03.5-025-reverse"
        assert card_slot_key("base1-4", CardVariant.FIRST_EDITION) == "base1-4-firstEdition"


class TestCatalogModels:
    def test_fallback_card_to_dict(self) -> None:
        """Optional fields are only written when present."""
        bare = FallbackCard(image_large="l.png", image_small="s.png")
        full = FallbackCard(image_large="l.png", image_small="s.png", name="Charizard", set=SetRef("base1", "Base"))

        assert bare.to_dict() == {"imageLarge": "l.png", "imageSmall": "s.png"}
        assert FallbackCard.from_dict(full.to_dict()) == full

    def test_fallback_card_requires_images(self) -> None:
        """Stored records without image fields are rejected."""
        with pytest.raises(KeyError):
            FallbackCard.from_dict({"name": "Charizard"})

    def test_best_image(self) -> None:
        assert FallbackCard(image_large="", image_small="s.png").best_image == "s.png"
        assert FallbackCard(image_large="", image_small="").best_image is None

    def test_species_slot_key(self) -> None:
        """Forms extend the dex number."""
        assert SpeciesSummary(dex_id=25, name="Pikachu").slot_key == "25"
        assert SpeciesSummary(dex_id=19, name="Rattata", form="alola").slot_key == "19-alola"
