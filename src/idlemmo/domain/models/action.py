from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from idlemmo.domain.models.payload import optional_int, require_int, require_mapping
from idlemmo.domain.models.skill import SkillData, SkillType
from idlemmo.errors import DecodeError


@dataclass
class Action:
    skill_type: SkillType
    item_name: Optional[str]
    current_progress: float
    expires_in: timedelta
    quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    refresh_data: Optional[SkillData] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Action":
        context = "active action"
        data = require_mapping(payload, context)

        item = data.get("item")
        item_name = item.get("name") if isinstance(item, dict) else None

        progress = data.get("current_progress")
        if isinstance(progress, dict):
            progress = progress.get("percentage", 0.0)
        try:
            current_progress = float(progress or 0.0)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"{context}: invalid progress {progress!r}") from exc

        refresh = data.get("refresh")
        refresh_data = None
        if isinstance(refresh, dict) and refresh.get("data") is not None:
            refresh_data = SkillData.from_payload(refresh["data"])

        return cls(
            skill_type=SkillType.parse(data.get("type")),
            item_name=item_name if isinstance(item_name, str) else None,
            current_progress=current_progress,
            expires_in=timedelta(milliseconds=require_int(data, "expires_in", context)),
            quantity=optional_int(data, "quantity", context),
            max_quantity=optional_int(data, "max_quantity", context),
            refresh_data=refresh_data,
        )
