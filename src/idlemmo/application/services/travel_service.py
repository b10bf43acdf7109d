import logging
from dataclasses import dataclass
from enum import Enum

from idlemmo.application.services.world_state_service import WorldStateService
from idlemmo.domain.models.location import Location, TravelMode
from idlemmo.domain.models.session_state import SessionState
from idlemmo.errors import DecodeError
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, Rule, default_resolver
from idlemmo.infrastructure.game_transport import GameTransport
from idlemmo.infrastructure.obfuscation import anti_automation_fields


class TravelStatus(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TELEPORTED = "teleported"
    ALREADY_THERE = "already_there"
    WALKING = "walking"


@dataclass(frozen=True)
class TravelResult:
    status: TravelStatus
    message: str


class TravelService:
    def __init__(
        self,
        transport: GameTransport,
        state: SessionState,
        world: WorldStateService,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.state = state
        self.world = world
        self.resolver = resolver
        self._logger = logging.getLogger(__name__)

    def move_location(self, travel_mode: TravelMode, location: Location) -> TravelResult:
        self._logger.info(
            "Attempting to move to new location.",
            extra={"location": location.name, "travel_mode": travel_mode.value},
        )
        if travel_mode is TravelMode.TELEPORT:
            result = self._teleport(location)
        else:
            result = self._walk(location)
        self._logger.info(result.message, extra={"location": location.name, "status": result.status.value})
        return result

    def _teleport(self, location: Location) -> TravelResult:
        current_gold = self.state.character_info.gold
        if current_gold < location.teleport_cost:
            self._logger.warning(
                "Teleport failed: Not enough gold.",
                extra={"current_gold": current_gold, "cost": location.teleport_cost},
            )
            return TravelResult(TravelStatus.INSUFFICIENT_FUNDS, "Not enough gold to teleport")

        self.transport.post_form(
            self.transport.url(f"locations/teleport/{location.key}"),
            {"_token": self.state.csrf_token},
        )
        self.world.refresh()

        # gold going down is the only signal the server gives back
        if current_gold > self.state.character_info.gold:
            return TravelResult(TravelStatus.TELEPORTED, "Teleport successful")
        return TravelResult(TravelStatus.ALREADY_THERE, "You are already at this location")

    def _walk(self, location: Location) -> TravelResult:
        api_url = self.resolver.resolve(Rule.LOCATIONS_TRAVEL, self.state.page_text)
        response = self.transport.post_json(api_url, {"location_id": location.id, **anti_automation_fields()})
        payload = self.transport.decode_json(response)
        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, str):
            raise DecodeError("travel response: missing field 'message'")
        return TravelResult(TravelStatus.WALKING, message)
