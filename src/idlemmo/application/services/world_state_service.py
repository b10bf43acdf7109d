import logging

from idlemmo.application.services.character_service import CharacterService
from idlemmo.domain.models.session_state import SessionState
from idlemmo.errors import IdleMMOError
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, Rule, default_resolver
from idlemmo.infrastructure.game_transport import GameTransport


class WorldStateService:
    def __init__(
        self,
        transport: GameTransport,
        state: SessionState,
        characters: CharacterService,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.state = state
        self.characters = characters
        self.resolver = resolver
        self._logger = logging.getLogger(__name__)

    def refresh(self) -> None:
        """Re-read the origin page, its CSRF token and the character record.

        Page text and token are replaced together. Failing to fetch the
        character record only logs a warning and keeps the previous record;
        any other failure propagates before the snapshot is touched.
        """
        response = self.transport.get(self.transport.base_url)
        html = response.text
        csrf_token = self.resolver.resolve(Rule.CSRF_TOKEN, html)
        self.state.replace_snapshot(html, csrf_token)

        try:
            self.state.character_info = self.characters.get_character_information()
        except IdleMMOError as exc:
            self._logger.warning(
                "Failed to get character information during data update.",
                extra={"error": str(exc)},
            )

        self._logger.info("Current data updated.", extra={"token_prefix": self.state.csrf_token[:8]})
