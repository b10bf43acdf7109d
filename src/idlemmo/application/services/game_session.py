from idlemmo.application.services.action_service import ActionService
from idlemmo.application.services.character_service import CharacterService
from idlemmo.application.services.location_service import LocationService
from idlemmo.application.services.session_manager import SessionManager
from idlemmo.application.services.travel_service import TravelService
from idlemmo.application.services.world_state_service import WorldStateService
from idlemmo.domain.models.character import Character
from idlemmo.domain.models.session_state import SessionState
from idlemmo.domain.repositories import AccountRepository
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, default_resolver
from idlemmo.infrastructure.game_transport import GameTransport


class GameSession:
    """Everything needed to drive one account at a time.

    All services share the same ``SessionState`` and transport; accounts are
    processed one after another through ``session.load_account``.
    """

    def __init__(
        self,
        transport: GameTransport,
        accounts: AccountRepository,
        *,
        state: SessionState | None = None,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.accounts = accounts
        self.state = state or SessionState()
        self.characters = CharacterService(transport, self.state, resolver)
        self.world = WorldStateService(transport, self.state, self.characters, resolver)
        self.locations = LocationService(transport, self.state, resolver)
        self.travel = TravelService(transport, self.state, self.world, resolver)
        self.actions = ActionService(transport, self.state, self.locations, resolver)
        self.session = SessionManager(transport, self.state, self.world, self.locations, accounts, resolver)

    def switch_character(self, character: Character) -> bool:
        switched = self.characters.request_switch(character)
        if switched:
            self.world.refresh()
        return switched

    def close(self) -> None:
        self.transport.close()
        close_accounts = getattr(self.accounts, "close", None)
        if callable(close_accounts):
            close_accounts()
