"""Login, two-factor resumption and stored-session validation.

Login is modelled as a small state machine. ``begin_login`` and
``submit_two_factor`` each return either a ``TwoFactorChallenge`` (the
server wants a code) or a ``LoginComplete``; callers that have a code
source at hand can use ``login`` to drive the loop in one call.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

import httpx

from idlemmo.application.services.location_service import LocationService
from idlemmo.application.services.world_state_service import WorldStateService
from idlemmo.domain.models.account import Account, mask_email
from idlemmo.domain.models.session_state import SessionState
from idlemmo.domain.repositories import AccountRepository
from idlemmo.errors import DecodeError, ParseError, SessionStateError
from idlemmo.infrastructure.endpoint_resolver import EndpointResolver, Rule, default_resolver
from idlemmo.infrastructure.game_transport import GameTransport


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AWAITING_TWO_FACTOR = "awaiting_two_factor"
    AUTHENTICATED = "authenticated"
    INVALID = "invalid"


@dataclass(frozen=True)
class TwoFactorChallenge:
    submit_url: str
    attempt: int = 1

    @property
    def is_retry(self) -> bool:
        return self.attempt > 1


@dataclass(frozen=True)
class LoginComplete:
    api_token: str
    character_id: str


LoginResult = Union[TwoFactorChallenge, LoginComplete]
CodeProvider = Callable[[TwoFactorChallenge], int]


def account_name_from_url(url: httpx.URL | str) -> Optional[str]:
    """Return the ``@name`` fragment the game redirects logged-in users to."""
    segments = [segment for segment in str(url).split("@") if "/" not in segment]
    return segments[-1] if segments else None


class SessionManager:
    def __init__(
        self,
        transport: GameTransport,
        state: SessionState,
        world: WorldStateService,
        locations: LocationService,
        accounts: AccountRepository,
        resolver: EndpointResolver = default_resolver,
    ) -> None:
        self.transport = transport
        self.state = state
        self.world = world
        self.locations = locations
        self.accounts = accounts
        self.resolver = resolver
        self.status = SessionStatus.ANONYMOUS
        self._logger = logging.getLogger(__name__)

    def list_accounts(self) -> List[Account]:
        return self.accounts.list_all()

    def begin_login(self, email: str, password: str) -> LoginResult:
        self._logger.info("Sending login credentials...")
        self.status = SessionStatus.AUTHENTICATING
        response = self.transport.post_form(
            self.transport.url("login"),
            {
                "remember": "true",
                "_token": self.state.csrf_token,
                "email": email,
                "password": password,
            },
        )
        return self._inspect_login_response(response.text, attempt=1)

    def submit_two_factor(self, challenge: TwoFactorChallenge, code: int) -> LoginResult:
        if self.status is not SessionStatus.AWAITING_TWO_FACTOR:
            raise SessionStateError(f"No two-factor challenge pending (status: {self.status.value})")

        self._logger.info("Submitting 2FA code...")
        response = self.transport.post_form(
            challenge.submit_url,
            {"_token": self.state.csrf_token, "code": str(int(code))},
        )
        self._logger.debug("2FA response HTML received", extra={"html_len": len(response.text)})
        return self._inspect_login_response(response.text, attempt=challenge.attempt + 1)

    def login(self, email: str, password: str, code_provider: CodeProvider) -> LoginComplete:
        result = self.begin_login(email, password)
        while isinstance(result, TwoFactorChallenge):
            if result.is_retry:
                self._logger.warning("Invalid 2FA code. Please try again.")
            else:
                self._logger.warning("2FA Required: A code has been sent to your email. Please enter it below.")
            result = self.submit_two_factor(result, code_provider(result))
        return result

    def _inspect_login_response(self, html: str, *, attempt: int) -> LoginResult:
        submit_url = self.resolver.find(Rule.TWO_FACTOR_URL, html)
        if submit_url is not None:
            self.status = SessionStatus.AWAITING_TWO_FACTOR
            return TwoFactorChallenge(submit_url=submit_url, attempt=attempt)

        self._logger.info("2FA check passed (or was not required).")
        self.world.refresh()
        return self.promote_token()

    def promote_token(self) -> LoginComplete:
        """Switch the transport to the API token found on the current page."""
        self._logger.info("Extracting API token and user metadata...")
        page = self.state.page_text
        api_token = self.resolver.resolve(Rule.API_TOKEN, page)
        self.transport.authorize(api_token)
        character_id = self.resolver.resolve(Rule.CHARACTER_ID, page)
        self.status = SessionStatus.AUTHENTICATED
        self._logger.info(
            "User data extracted",
            extra={"token_prefix": api_token[:8], "character_id": character_id},
        )
        return LoginComplete(api_token=api_token, character_id=character_id)

    def add_account(self, email: str, password: str, code_provider: CodeProvider) -> Account:
        self._start_fresh_session(SessionStatus.ANONYMOUS)
        self.world.refresh()
        completed = self.login(email, password, code_provider)

        record = {
            "email": email,
            "api_token": completed.api_token,
            "cookie_str": self.transport.cookie_string(),
        }
        account_id = self.accounts.insert(record)
        self._logger.info("Account added.", extra={"user_id": account_id, "user_email": mask_email(email)})
        return Account(id=account_id, **record)

    def _start_fresh_session(self, status: SessionStatus) -> None:
        """Drop everything the previous account left in the state and transport."""
        self.state.reset()
        self.transport.deauthorize()
        self.status = status

    def load_account(self, account: Account) -> bool:
        """Restore a stored session; drop the account if the server rejects it.

        Returns whether the session is usable. Parse and decode failures while
        reading the logged-in page count as an invalid session; transport and
        store failures propagate.
        """
        self._logger.info("Loading account.", extra={"user_id": account.id, "user_email": account.masked_email})
        self._start_fresh_session(SessionStatus.AUTHENTICATING)
        self.transport.authorize(account.api_token)
        self.transport.load_cookie_string(account.cookie_str)

        self._logger.info("Attempting to load account with stored cookie...")
        response = self.transport.get(self.transport.base_url)

        is_session_valid = False
        account_name = account_name_from_url(response.url)
        if account_name is not None:
            self._logger.info("Account loaded. Welcome", extra={"account_name": account_name})
            try:
                self.world.refresh()
                self.locations.get_locations(use_cache=False)
                is_session_valid = True
            except (ParseError, DecodeError, SessionStateError) as exc:
                self._logger.warning("Logged-in page could not be read.", extra={"error": str(exc)})

        if not is_session_valid:
            self.status = SessionStatus.INVALID
            self._logger.warning("Session cookie appears invalid. Removing user from database.")
            self.accounts.remove(account.id)
            return False

        self.status = SessionStatus.AUTHENTICATED
        return True
