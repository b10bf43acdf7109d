import logging
from typing import Any, List, Optional

from idlemmo.domain.models.location import Location
from idlemmo.domain.models.session_state import SessionState
from idlemmo.domain.models.skill import SkillConfig
from idlemmo.domain.services.skill_ranking import SkillChoice, find_best_skill
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, Rule, default_resolver
from idlemmo.infrastructure.game_transport import GameTransport


logger = logging.getLogger(__name__)


def _location_ids(payload: Any) -> List[int]:
    entries = payload.values() if isinstance(payload, dict) else payload if isinstance(payload, list) else []
    ids = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        value = entry.get("id")
        if isinstance(value, int) and not isinstance(value, bool):
            ids.append(value)
    return ids


class LocationService:
    def __init__(
        self,
        transport: GameTransport,
        state: SessionState,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.state = state
        self.resolver = resolver

    def get_locations(self, use_cache: bool = True) -> List[Location]:
        """Locations the current character can do something at, farthest first.

        With ``use_cache`` and a non-empty cache no request is made. Otherwise
        every location is fetched through its quick view, reduced to eligible
        enemies and skill items, and the cache is overwritten.
        """
        if use_cache and self.state.locations:
            return list(self.state.locations)

        page = self.state.page_text
        all_locations_url = self.resolver.resolve(Rule.LOCATIONS_ALL, page)
        logger.debug("Calling API: Get All Locations", extra={"url": all_locations_url})
        response = self.transport.post_json(all_locations_url, retry=True)
        location_ids = _location_ids(self.transport.decode_json(response))
        logger.debug("Found initial locations.", extra={"count": len(location_ids)})

        locations: List[Location] = []
        if not location_ids:
            logger.warning("No locations found in the initial fetch.")
        else:
            quick_view_url = self.resolver.resolve(Rule.QUICK_VIEW_LOCATION, page)
            character = self.state.character_info
            for location_id in location_ids:
                detail = self.transport.post_json(quick_view_url, {"location_id": location_id}, retry=True)
                location = Location.from_payload(self.transport.decode_json(detail)).eligible_for(character)
                if location.has_activities:
                    locations.append(location)
            locations.sort(key=lambda location: location.distance, reverse=True)

        self.state.locations = locations
        logger.info("Finished filtering locations.", extra={"count": len(locations)})
        return list(locations)

    def find_best_skill(self, config: SkillConfig) -> Optional[SkillChoice]:
        choice = find_best_skill(self.state.locations, config)
        if choice is None:
            logger.info("No eligible skill item found.", extra={"skill_type": config.skill_type.value})
        else:
            logger.info(
                "Best skill item selected.",
                extra={"location": choice.location.name, "item": choice.item.name, "level": choice.item.level_required},
            )
        return choice
