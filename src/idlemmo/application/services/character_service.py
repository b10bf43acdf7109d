import logging
from typing import List

from idlemmo.domain.models.character import Character, CharacterInfo
from idlemmo.domain.models.session_state import SessionState
from idlemmo.domain.models.skill import SkillType
from idlemmo.errors import DecodeError
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, Rule, default_resolver, skill_level_rule
from idlemmo.infrastructure.game_transport import GameTransport


logger = logging.getLogger(__name__)


class CharacterService:
    def __init__(
        self,
        transport: GameTransport,
        state: SessionState,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.state = state
        self.resolver = resolver

    def get_character_information(self) -> CharacterInfo:
        """Fetch the character record and overlay skill levels from the page.

        Returns a new record; the caller decides whether it replaces the
        cached one.
        """
        page = self.state.page_text
        api_url = self.resolver.resolve(Rule.CHARACTER_INFORMATION, page)
        logger.debug("Calling API: Get Character Information", extra={"url": api_url})

        response = self.transport.post_json(api_url, {}, retry=True)
        info = CharacterInfo.from_payload(self.transport.decode_json(response))

        for skill_type in SkillType.scrapable():
            value = self.resolver.find(skill_level_rule(skill_type), page)
            if value is not None:
                info.update_skill(skill_type, value)

        logger.info("Character information fetched.", extra={"character_name": info.name, "character_id": info.id})
        return info

    def get_all_characters(self) -> List[Character]:
        api_url = self.resolver.resolve(Rule.CHARACTERS_ALL, self.state.page_text)
        logger.debug("Calling API: Get All Characters", extra={"url": api_url})

        response = self.transport.post_json(api_url, {}, retry=True)
        payload = self.transport.decode_json(response)
        if not isinstance(payload, dict):
            raise DecodeError("character list: expected a JSON object")
        raw_characters = payload.get("characters") or []
        if not isinstance(raw_characters, list):
            raise DecodeError("character list: 'characters' must be a list")

        characters = [Character.from_payload(entry) for entry in raw_characters]
        logger.info("All characters fetched.", extra={"count": len(characters)})
        return characters

    def request_switch(self, character: Character) -> bool:
        """Ask the server to make ``character`` active.

        Returns False without any request when it already is.
        """
        if character.is_current:
            logger.info("Target character is already currently active. Skipping switch.")
            return False

        self.transport.post_form(
            self.transport.url(f"user/character/switch/{character.id}"),
            {
                "_token": self.state.csrf_token,
                "return_to_current_page": "false",
            },
        )
        logger.info("Character switched.", extra={"character_name": character.name, "character_id": character.id})
        return True
