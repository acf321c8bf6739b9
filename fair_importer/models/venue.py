from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

VALID_VENUE_OPTION_TYPES = {"existing", "new", "none"}


@dataclass
class VenueRef:
    id: str
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VenueRef:
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            city=data.get("city"),
            state=data.get("state"),
            address=data.get("address"),
        )


@dataclass
class PromoterRef:
    id: str
    company_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PromoterRef:
        return cls(id=str(data["id"]), company_name=data.get("companyName") or "")


@dataclass(frozen=True)
class VenueOption:
    """How the imported event is linked to a venue.

    Exactly one shape is valid at a time: an existing venue id, a new venue
    described by name and address parts, or no venue at all.
    """

    type: str                                  # "existing" | "new" | "none"
    id: Optional[str] = None
    name: Optional[str] = None
    address: str = ""
    city: str = ""
    state: str = ""

    def __post_init__(self):
        if self.type not in VALID_VENUE_OPTION_TYPES:
            raise ValueError(
                f"Invalid venue option type '{self.type}'. "
                f"Must be one of: {sorted(VALID_VENUE_OPTION_TYPES)}"
            )
        if self.type == "existing" and not self.id:
            raise ValueError("An existing venue option requires an id")
        if self.type == "new" and not self.name:
            raise ValueError("A new venue option requires a name")
        if self.type != "existing" and self.id:
            raise ValueError(f"A '{self.type}' venue option cannot carry an id")

    @classmethod
    def existing(cls, venue_id: str) -> VenueOption:
        return cls(type="existing", id=venue_id)

    @classmethod
    def new(
        cls, name: str, address: str = "", city: str = "", state: str = ""
    ) -> VenueOption:
        return cls(type="new", name=name, address=address, city=city, state=state)

    @classmethod
    def none(cls) -> VenueOption:
        return cls(type="none")

    def to_dict(self) -> Dict[str, Any]:
        if self.type == "existing":
            return {"type": "existing", "id": self.id}
        if self.type == "new":
            return {
                "type": "new",
                "name": self.name,
                "address": self.address,
                "city": self.city,
                "state": self.state,
            }
        return {"type": "none"}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VenueOption:
        option_type = data.get("type")
        if option_type == "existing":
            return cls.existing(str(data.get("id") or ""))
        if option_type == "new":
            return cls.new(
                data.get("name") or "",
                address=data.get("address") or "",
                city=data.get("city") or "",
                state=data.get("state") or "",
            )
        if option_type == "none":
            return cls.none()
        raise ValueError(f"Unknown venue option type: {option_type!r}")
