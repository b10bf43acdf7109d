from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, List

from idlemmo.domain.models.character import CharacterInfo
from idlemmo.domain.models.payload import optional_int, optional_list, require_int, require_mapping
from idlemmo.domain.models.skill import SkillItem


class TravelMode(str, Enum):
    WALK = "walk"
    TELEPORT = "teleport"


@dataclass(frozen=True)
class Item:
    id: int
    name: str = ""
    level: int = 0

    @classmethod
    def from_payload(cls, payload: Any) -> "Item":
        data = require_mapping(payload, "item")
        return cls(
            id=require_int(data, "id", "item"),
            name=str(data.get("name") or ""),
            level=optional_int(data, "level", "item", default=0) or 0,
        )


@dataclass
class Location:
    id: int
    key: str
    name: str
    recommended_level: int = 0
    teleport_cost: int = 0
    distance: int = 0
    enemies: List[Item] = field(default_factory=list)
    dungeons: List[Item] = field(default_factory=list)
    skill_items: List[SkillItem] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "Location":
        context = "location"
        data = require_mapping(payload, context)
        location_id = require_int(data, "id", context)
        return cls(
            id=location_id,
            key=str(data.get("key") or location_id),
            name=str(data.get("name") or ""),
            recommended_level=optional_int(data, "recommended_level", context, default=0) or 0,
            teleport_cost=optional_int(data, "teleport_cost", context, default=0) or 0,
            distance=optional_int(data, "distance", context, default=0) or 0,
            enemies=[Item.from_payload(entry) for entry in optional_list(data, "enemies", context)],
            dungeons=[Item.from_payload(entry) for entry in optional_list(data, "dungeons", context)],
            skill_items=[SkillItem.from_payload(entry) for entry in optional_list(data, "skill_items", context)],
        )

    def eligible_for(self, character: CharacterInfo) -> "Location":
        """Copy of this location reduced to what ``character`` can take on.

        Enemies are kept up to the combat level; skill items up to the learned
        level for their type, where an unrecorded type counts as level zero.
        Dungeons are left untouched.
        """
        return replace(
            self,
            enemies=[enemy for enemy in self.enemies if enemy.level <= character.combat_level],
            skill_items=[
                item for item in self.skill_items if character.skill_level(item.skill_type) >= item.level_required
            ],
        )

    @property
    def has_activities(self) -> bool:
        return bool(self.enemies or self.skill_items)
