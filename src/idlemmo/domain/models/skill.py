from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, List, Optional

from idlemmo.domain.models.payload import (
    optional_int,
    optional_list,
    require_int,
    require_mapping,
)
from idlemmo.errors import DecodeError


class SkillType(str, Enum):
    WOODCUTTING = "woodcutting"
    MINING = "mining"
    FISHING = "fishing"
    ALCHEMY = "alchemy"
    SMELTING = "smelting"
    COOKING = "cooking"
    FORGE = "forge"
    MEDITATION = "meditation"
    TRAVELLING = "travelling"

    @classmethod
    def parse(cls, value: Any) -> "SkillType":
        normalized = str(value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise DecodeError(f"Unknown skill type: {value!r}") from exc

    @classmethod
    def scrapable(cls) -> List["SkillType"]:
        """Skill types that have a level entry on the character page."""
        return [skill for skill in cls if skill is not cls.TRAVELLING]


class FilterBy(str, Enum):
    HIGHEST_LEVEL_REQUIRED = "highest_level_required"
    LOWEST_LEVEL_REQUIRED = "lowest_level_required"
    FASTEST_TIME = "fastest_time"
    LONGEST_TIME = "longest_time"
    HIGHEST_EXPERIENCE = "highest_experience"
    LOWEST_EXPERIENCE = "lowest_experience"
    ITEM_NAME = "item_name"


@dataclass(frozen=True)
class RequiredItem:
    id: int
    name: str = ""
    quantity: int = 1


@dataclass
class SkillItem:
    id: int
    name: str
    # kept as the raw lowercase type so unknown disciplines still decode
    skill_type: str
    level_required: int = 0
    wait_length: timedelta = field(default_factory=timedelta)
    required_items: List[RequiredItem] = field(default_factory=list)
    quantity: int = 1

    @classmethod
    def from_payload(cls, payload: Any) -> "SkillItem":
        context = "skill item"
        data = require_mapping(payload, context)
        raw_type = data.get("skill", data.get("type"))
        if not isinstance(raw_type, str) or not raw_type.strip():
            raise DecodeError(f"{context}: missing field 'skill'")
        required = []
        for entry in optional_list(data, "required_items", context):
            entry_data = require_mapping(entry, "required item")
            required.append(
                RequiredItem(
                    id=require_int(entry_data, "id", "required item"),
                    name=str(entry_data.get("name") or ""),
                    quantity=optional_int(entry_data, "quantity", "required item", default=1) or 1,
                )
            )
        return cls(
            id=require_int(data, "id", context),
            name=str(data.get("name") or ""),
            skill_type=raw_type.strip().lower(),
            level_required=optional_int(data, "level_required", context, default=0) or 0,
            wait_length=timedelta(milliseconds=optional_int(data, "wait_length", context, default=0) or 0),
            required_items=required,
            quantity=optional_int(data, "quantity", context, default=1) or 1,
        )


@dataclass(frozen=True)
class SkillData:
    skill_item_id: int
    quantity: int
    essence_crystal: Optional[int] = None
    auto_purchase: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "SkillData":
        context = "skill data"
        data = require_mapping(payload, context)
        return cls(
            skill_item_id=require_int(data, "skill_item_id", context),
            quantity=require_int(data, "quantity", context),
            essence_crystal=optional_int(data, "essence_crystal", context),
            auto_purchase=bool(data.get("auto_purchase", False)),
        )


@dataclass
class SkillConfig:
    skill_type: SkillType = SkillType.WOODCUTTING
    essence_crystal: Optional[int] = None
    auto_purchase: bool = False
    filter_by: FilterBy = FilterBy.HIGHEST_LEVEL_REQUIRED
    item_name: Optional[str] = None
