from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from idlemmo.domain.models.payload import optional_int, require_int, require_mapping, require_str
from idlemmo.domain.models.skill import SkillType
from idlemmo.errors import NumericParseError


@dataclass
class CharacterInfo:
    id: int = 0
    name: str = ""
    combat_level: int = 0
    total_level: int = 0
    skill_levels: Dict[str, int] = field(default_factory=dict)
    gold: int = 0
    tokens: int = 0
    shards: int = 0
    health: int = 0
    max_health: int = 0
    location_id: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CharacterInfo":
        context = "character information"
        data = require_mapping(payload, context)
        location_id = optional_int(data, "location_id", context)
        if location_id is None and isinstance(data.get("location"), dict):
            location_id = optional_int(data["location"], "id", context)
        return cls(
            id=require_int(data, "id", context),
            name=require_str(data, "name", context),
            combat_level=require_int(data, "combat_level", context),
            total_level=optional_int(data, "total_level", context, default=0) or 0,
            gold=require_int(data, "gold", context),
            tokens=optional_int(data, "tokens", context, default=0) or 0,
            shards=optional_int(data, "shards", context, default=0) or 0,
            health=optional_int(data, "health", context, default=0) or 0,
            max_health=optional_int(data, "max_health", context, default=0) or 0,
            location_id=location_id,
        )

    def skill_level(self, skill_type: SkillType | str) -> int:
        key = skill_type.value if isinstance(skill_type, SkillType) else str(skill_type).lower()
        return self.skill_levels.get(key, 0)

    def update_skill(self, skill_type: SkillType, value: str) -> None:
        try:
            level = int(str(value).strip())
        except ValueError as exc:
            raise NumericParseError(f"Skill level for {skill_type.value} is not a number: {value!r}") from exc
        self.skill_levels[skill_type.value] = level


@dataclass
class Character:
    id: int
    name: str
    class_name: str = ""
    level: int = 0
    is_current: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "Character":
        context = "character"
        data = require_mapping(payload, context)
        return cls(
            id=require_int(data, "id", context),
            name=require_str(data, "name", context),
            class_name=str(data.get("class_name") or ""),
            level=optional_int(data, "level", context, default=0) or 0,
            is_current=bool(data.get("is_current", False)),
        )
