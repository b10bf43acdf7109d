import logging
from dataclasses import dataclass
from typing import Optional

from idlemmo.application.services.location_service import LocationService
from idlemmo.domain.models.action import Action
from idlemmo.domain.models.session_state import SessionState
from idlemmo.domain.models.skill import SkillConfig
from idlemmo.domain.services.skill_ranking import SkillChoice
from idlemmo.errors import DecodeError
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, Rule, default_resolver
from idlemmo.infrastructure.game_transport import GameTransport
from idlemmo.infrastructure.obfuscation import PROTOCOL_VERSION, anti_automation_fields


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkillStart:
    choice: SkillChoice
    message: str


class ActionService:
    def __init__(
        self,
        transport: GameTransport,
        state: SessionState,
        locations: LocationService,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.state = state
        self.locations = locations
        self.resolver = resolver

    def get_active_action(self) -> Optional[Action]:
        api_url = self.resolver.resolve(Rule.ACTION_ACTIVE, self.state.page_text)
        logger.debug("Calling API: Get Active Action", extra={"url": api_url})
        response = self.transport.post_json(
            api_url,
            {"character_id": self.state.character_info.id, "v": PROTOCOL_VERSION},
            retry=True,
        )

        payload = self.transport.decode_json(response)
        # the endpoint answers with an empty array when nothing is running
        if isinstance(payload, list):
            logger.info("No active action found for current character.")
            return None

        action = Action.from_payload(payload)
        logger.info(
            "Active action found.",
            extra={"skill_type": action.skill_type.value, "item_name": action.item_name},
        )
        return action

    def start_skill(self, config: SkillConfig) -> Optional[SkillStart]:
        self.locations.get_locations(use_cache=True)
        choice = self.locations.find_best_skill(config)
        if choice is None:
            return None

        page = self.transport.get(self.transport.url(f"skills/view/{config.skill_type.value}"))
        api_url = self.resolver.resolve(Rule.SKILLS_START, page.text)
        response = self.transport.post_json(
            api_url,
            {
                "skill_item_id": choice.item.id,
                "quantity": 1,
                "essence_crystal": config.essence_crystal,
                "auto_purchase": config.auto_purchase,
                **anti_automation_fields(),
            },
        )
        payload = self.transport.decode_json(response)
        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, str):
            raise DecodeError("skill start response: missing field 'message'")

        logger.info(
            "Skill started.",
            extra={"item_name": choice.item.name, "location": choice.location.name},
        )
        return SkillStart(choice=choice, message=message)
