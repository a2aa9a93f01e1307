from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SetRef:
    """Owning set of a catalog card."""

    id: str
    name: str


@dataclass(frozen=True, slots=True)
class FallbackCard:
    """
    Best-known image and metadata for a card from the fallback catalog.

    Attributes:
        image_large: High resolution image URL
        image_small: Thumbnail image URL
        name: Display name if the catalog returned one
        set: Owning set if the catalog returned one
    """

    image_large: str
    image_small: str
    name: str | None = None
    set: SetRef | None = None

    @property
    def best_image(self) -> str | None:
        return self.image_large or self.image_small or None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"imageLarge": self.image_large, "imageSmall": self.image_small}
        if self.name is not None:
            data["name"] = self.name
        if self.set is not None:
            data["set"] = {"id": self.set.id, "name": self.set.name}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FallbackCard":
        """
        Build from a stored record.

        Raises KeyError/TypeError if the image fields are missing.
        """
        set_data = data.get("set")
        return cls(
            image_large=str(data["imageLarge"]),
            image_small=str(data["imageSmall"]),
            name=data.get("name"),
            set=SetRef(id=str(set_data["id"]), name=str(set_data.get("name", "")))
            if isinstance(set_data, dict)
            else None,
        )


@dataclass(frozen=True, slots=True)
class SpeciesSummary:
    """Entry in the national species list."""

    dex_id: int
    name: str
    form: str | None = None

    @property
    def slot_key(self) -> str:
        """Slot key in dex-style binders (dexId, or dexId-form)."""
        return f"{self.dex_id}-{self.form}" if self.form else str(self.dex_id)
