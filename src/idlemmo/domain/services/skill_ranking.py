from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from idlemmo.domain.models.location import Location
from idlemmo.domain.models.skill import FilterBy, SkillConfig, SkillItem
from idlemmo.errors import UnsupportedFilterError


T = TypeVar("T")


@dataclass(frozen=True)
class SkillChoice:
    location: Location
    item: SkillItem


def _pick_max(candidates: Iterable[T], key: Callable[[T], int]) -> Optional[T]:
    best: Optional[T] = None
    for candidate in candidates:
        if best is None or key(candidate) > key(best):
            best = candidate
    return best


def _pick_min(candidates: Iterable[T], key: Callable[[T], int]) -> Optional[T]:
    best: Optional[T] = None
    for candidate in candidates:
        if best is None or key(candidate) < key(best):
            best = candidate
    return best


_PICKERS = {
    FilterBy.HIGHEST_LEVEL_REQUIRED: _pick_max,
    FilterBy.LOWEST_LEVEL_REQUIRED: _pick_min,
}


def find_best_skill(locations: Sequence[Location], config: SkillConfig) -> Optional[SkillChoice]:
    """Pick the skill item to work on among ``locations``.

    Each location first elects its own winner among items of the requested
    type, then the winners compete with the same rule. Ties keep the earliest
    candidate, so with distance-sorted locations the farthest one wins.
    """
    pick = _PICKERS.get(config.filter_by)
    if pick is None:
        raise UnsupportedFilterError(f"Skill filter '{config.filter_by.value}' is not supported")

    wanted = config.skill_type.value
    winners: list[SkillChoice] = []
    for location in locations:
        matching = [item for item in location.skill_items if item.skill_type == wanted]
        local_best = pick(matching, key=lambda item: item.level_required)
        if local_best is not None:
            winners.append(SkillChoice(location=location, item=local_best))

    return pick(winners, key=lambda choice: choice.item.level_required)
