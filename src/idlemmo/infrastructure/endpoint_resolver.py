"""Named text-pattern rules for values the game server only exposes in markup.

The game embeds its CSRF token, API token and per-build signed API URLs in
the HTML it serves (meta tags and JSON blobs inside scripts). Each value is
described by one rule: a name plus a regex whose first group is the value.
Rules live in a registry so new subsystems only need a new entry.
"""

import html
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from idlemmo.domain.models.skill import SkillType
from idlemmo.errors import ParseError


class Rule(str, Enum):
    CSRF_TOKEN = "csrf_token"
    API_TOKEN = "api_token"
    CHARACTER_ID = "character_id"
    TWO_FACTOR_URL = "two_factor_url"
    CHARACTER_INFORMATION = "character_information_endpoint"
    CHARACTERS_ALL = "characters_all_endpoint"
    LOCATIONS_ALL = "locations_all_endpoint"
    LOCATIONS_TRAVEL = "locations_travel_endpoint"
    QUICK_VIEW_LOCATION = "quick_view_location_endpoint"
    ACTION_ACTIVE = "action_active_endpoint"
    SKILLS_START = "skills_start_endpoint"
    SKILLS_DATA = "skills_data_endpoint"


# one quoted URL; escaped JSON slashes ("\/") are allowed inside
_URL = r"""https?:[^'"\s<>]*?"""

DEFAULT_RULES: Dict[str, str] = {
    Rule.CSRF_TOKEN.value: r'name="csrf-token"\s*content="([^"]+)"',
    Rule.API_TOKEN.value: r'name="api-token"\s*content="([^"]+)"',
    Rule.CHARACTER_ID.value: r'name="character-id"\s*content="([^"]+)"',
    Rule.TWO_FACTOR_URL.value: r'action="(https?://[^"]+?/2fa/[^"]+)"',
    Rule.CHARACTER_INFORMATION.value: rf"""({_URL}/character\\?/information[^'"\s]*)["']""",
    Rule.CHARACTERS_ALL.value: rf"""({_URL}/characters\\?/all[^'"\s]*)["']""",
    Rule.LOCATIONS_ALL.value: rf"""({_URL}/locations\\?/all[^'"\s]*)["']""",
    Rule.LOCATIONS_TRAVEL.value: rf"""({_URL}/locations\\?/travel[^'"\s]*)["']""",
    Rule.QUICK_VIEW_LOCATION.value: rf"""({_URL}/quick-view\\?/location[^'"\s]*)""",
    Rule.ACTION_ACTIVE.value: rf"""({_URL}/action\\?/active[^'"\s]*)["']""",
    Rule.SKILLS_START.value: rf"""({_URL}/skills\\?/start[^'"\s]*)["']""",
    Rule.SKILLS_DATA.value: rf"""({_URL}/skills\\?/data[^'"\s]*)["']""",
}


def skill_level_rule(skill_type: SkillType) -> str:
    return f"skill_level.{skill_type.value}"


def _skill_level_pattern(skill_type: SkillType) -> str:
    # never cross another "level:" so a skill cannot pick up its neighbour's value
    return (
        r"""(?<![\w-])level\s*:\s*(\d+)(?:(?!(?<![\w-])level\s*:).)*?"""
        rf"""skills/view/{re.escape(skill_type.value)}(?![\w-])"""
    )


@dataclass(frozen=True)
class EndpointRule:
    name: str
    pattern: re.Pattern[str]


def _normalize(value: str) -> str:
    decoded = html.unescape(value)
    return decoded.replace("\\", "").replace("u0026", "&")


class EndpointResolver:
    def __init__(self, rules: Optional[Dict[str, str]] = None, *, include_skill_levels: bool = True) -> None:
        self._rules: Dict[str, EndpointRule] = {}
        for name, pattern in (rules if rules is not None else DEFAULT_RULES).items():
            self.register(name, pattern)
        if include_skill_levels:
            for skill_type in SkillType.scrapable():
                self.register(skill_level_rule(skill_type), _skill_level_pattern(skill_type), flags=re.DOTALL)

    def register(self, name: str, pattern: str, *, flags: int = 0) -> None:
        self._rules[str(name)] = EndpointRule(name=str(name), pattern=re.compile(pattern, flags))

    def _rule(self, name: Rule | str) -> EndpointRule:
        key = name.value if isinstance(name, Rule) else str(name)
        rule = self._rules.get(key)
        if rule is None:
            raise KeyError(f"Unknown endpoint rule '{key}'")
        return rule

    def find(self, name: Rule | str, text: str) -> Optional[str]:
        match = self._rule(name).pattern.search(text or "")
        if match is None or match.group(1) is None:
            return None
        return _normalize(match.group(1))

    def resolve(self, name: Rule | str, text: str) -> str:
        value = self.find(name, text)
        if value is None:
            raise ParseError(self._rule(name).name)
        return value


default_resolver = EndpointResolver()
