import sys
from pathlib import Path
import unittest

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from game_server_stub import (
    BASE_URL,
    FakeGameServer,
    build_session,
    form_body,
    game_page,
    location_payload,
    serve_world,
    two_factor_page,
)
from idlemmo.application.services.session_manager import (
    LoginComplete,
    SessionStatus,
    TwoFactorChallenge,
    account_name_from_url,
)
from idlemmo.domain.models.account import Account
from idlemmo.errors import SessionStateError
from idlemmo.infrastructure.inmemory.inmemory_account_repo import InMemoryAccountRepository


LOGGED_IN_PAGE = game_page(api_token="api-token-123456", character_id="501")


class AccountNameTests(unittest.TestCase):
    def test_reads_name_after_last_at_sign(self) -> None:
        self.assertEqual("aria", account_name_from_url(f"{BASE_URL}@aria"))
        self.assertEqual("aria", account_name_from_url(httpx.URL(f"{BASE_URL}@aria")))

    def test_login_page_has_no_name(self) -> None:
        self.assertIsNone(account_name_from_url(f"{BASE_URL}login"))
        self.assertIsNone(account_name_from_url(BASE_URL))


class LoginFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeGameServer()
        serve_world(self.server)
        self.server.route(
            "GET",
            "/",
            httpx.Response(200, text=game_page()),
            httpx.Response(200, text=LOGGED_IN_PAGE),
        )
        self.accounts = InMemoryAccountRepository()
        self.game = build_session(self.server, self.accounts)

    def tearDown(self) -> None:
        self.game.close()

    def test_add_account_submits_one_code_and_stores_session(self) -> None:
        self.server.route(
            "POST",
            "/login",
            httpx.Response(200, text=two_factor_page(), headers={"Set-Cookie": "idle_session=abc; Path=/"}),
        )
        self.server.route("POST", "/2fa/verify", httpx.Response(200, text="<html>welcome</html>"))
        challenges = []

        def code_provider(challenge: TwoFactorChallenge) -> int:
            challenges.append(challenge)
            return 123456

        account = self.game.session.add_account("player@example.com", "hunter2", code_provider)

        self.assertEqual(1, len(challenges))
        self.assertFalse(challenges[0].is_retry)
        self.assertEqual(f"{BASE_URL}2fa/verify", challenges[0].submit_url)

        login_form = form_body(self.server.requests_to("/login")[0])
        self.assertEqual(
            {"remember": "true", "_token": "csrf-token-0001", "email": "player@example.com", "password": "hunter2"},
            login_form,
        )
        verify_requests = self.server.requests_to("/2fa/verify")
        self.assertEqual(1, len(verify_requests))
        self.assertEqual({"_token": "csrf-token-0001", "code": "123456"}, form_body(verify_requests[0]))

        stored = self.accounts.list_all()
        self.assertEqual([account], stored)
        self.assertEqual("api-token-123456", account.api_token)
        self.assertIn("idle_session=abc", account.cookie_str)
        self.assertEqual(SessionStatus.AUTHENTICATED, self.game.session.status)
        self.assertEqual("api-token-123456", self.game.transport.api_token)

    def test_wrong_code_yields_retry_challenge(self) -> None:
        self.server.route("POST", "/login", httpx.Response(200, text=two_factor_page()))
        self.server.route(
            "POST",
            "/2fa/verify",
            httpx.Response(200, text=two_factor_page()),
            httpx.Response(200, text="<html>welcome</html>"),
        )
        codes = iter([111111, 222222])
        challenges = []

        def code_provider(challenge: TwoFactorChallenge) -> int:
            challenges.append(challenge)
            return next(codes)

        self.game.world.refresh()
        completed = self.game.session.login("player@example.com", "pw", code_provider)

        self.assertEqual(LoginComplete(api_token="api-token-123456", character_id="501"), completed)
        self.assertEqual([False, True], [challenge.is_retry for challenge in challenges])
        self.assertEqual(["111111", "222222"], [form_body(r)["code"] for r in self.server.requests_to("/2fa/verify")])

    def test_two_factor_can_be_resumed_step_by_step(self) -> None:
        self.server.route("POST", "/login", httpx.Response(200, text=two_factor_page()))
        self.server.route("POST", "/2fa/verify", httpx.Response(200, text="<html>welcome</html>"))
        self.game.world.refresh()

        challenge = self.game.session.begin_login("player@example.com", "pw")
        self.assertIsInstance(challenge, TwoFactorChallenge)
        self.assertEqual(SessionStatus.AWAITING_TWO_FACTOR, self.game.session.status)

        result = self.game.session.submit_two_factor(challenge, 42)

        self.assertIsInstance(result, LoginComplete)
        self.assertEqual("42", form_body(self.server.requests_to("/2fa/verify")[0])["code"])

    def test_login_without_two_factor_promotes_token_directly(self) -> None:
        self.server.route("POST", "/login", httpx.Response(200, text="<html>dashboard</html>"))
        self.game.world.refresh()

        result = self.game.session.begin_login("player@example.com", "pw")

        self.assertEqual("api-token-123456", result.api_token)
        self.assertEqual([], self.server.requests_to("/2fa/verify"))

    def test_submit_without_pending_challenge_is_rejected(self) -> None:
        with self.assertRaises(SessionStateError):
            self.game.session.submit_two_factor(TwoFactorChallenge(f"{BASE_URL}2fa/verify"), 1)

        self.assertEqual([], self.server.requests)


class LoadAccountTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeGameServer()
        serve_world(self.server, locations=[location_payload(1, enemies=[{"id": 1, "name": "Rat", "level": 2}])])
        self.account = Account(id=7, email="player@example.com", api_token="stored-token", cookie_str="idle_session=abc")
        self.accounts = InMemoryAccountRepository([self.account])
        self.game = build_session(self.server, self.accounts)

    def tearDown(self) -> None:
        self.game.close()

    def test_valid_session_is_restored(self) -> None:
        self.server.route("GET", "/", httpx.Response(302, headers={"Location": f"{BASE_URL}@aria"}))
        self.server.route("GET", "/@aria", httpx.Response(200, text=LOGGED_IN_PAGE))

        self.assertTrue(self.game.session.load_account(self.account))

        self.assertEqual(SessionStatus.AUTHENTICATED, self.game.session.status)
        self.assertEqual([self.account], self.accounts.list_all())
        self.assertEqual([1], [location.id for location in self.game.state.locations])
        first = self.server.requests_to("/")[0]
        self.assertEqual("Bearer stored-token", first.headers["authorization"])
        self.assertIn("idle_session=abc", first.headers["cookie"])

    def test_rejected_session_removes_account(self) -> None:
        self.server.route("GET", "/", httpx.Response(302, headers={"Location": f"{BASE_URL}login"}))
        self.server.route("GET", "/login", httpx.Response(200, text="<html>login</html>"))

        self.assertFalse(self.game.session.load_account(self.account))

        self.assertEqual(SessionStatus.INVALID, self.game.session.status)
        self.assertEqual([], self.accounts.list_all())
        self.assertEqual([], self.server.requests_to("/api/locations/all"))

    def test_unreadable_logged_in_page_counts_as_invalid(self) -> None:
        self.server.route("GET", "/", httpx.Response(302, headers={"Location": f"{BASE_URL}@aria"}))
        self.server.route("GET", "/@aria", httpx.Response(200, text="<html>maintenance</html>"))

        self.assertFalse(self.game.session.load_account(self.account))

        self.assertEqual([], self.accounts.list_all())

    def test_previous_account_state_is_discarded(self) -> None:
        self.game.transport.load_cookie_string("leftover=1")
        self.server.route("GET", "/", httpx.Response(302, headers={"Location": f"{BASE_URL}@aria"}))
        self.server.route("GET", "/@aria", httpx.Response(200, text=LOGGED_IN_PAGE))

        self.game.session.load_account(self.account)

        self.assertNotIn("leftover", self.server.requests_to("/")[0].headers["cookie"])


class AccountSwitchTests(unittest.TestCase):
    def test_adding_after_loading_starts_from_an_anonymous_session(self) -> None:
        server = FakeGameServer()
        serve_world(server, locations=[location_payload(1, enemies=[{"id": 1, "name": "Rat", "level": 2}])])
        server.route("GET", "/", httpx.Response(302, headers={"Location": f"{BASE_URL}@aria"}))
        server.route("GET", "/@aria", httpx.Response(200, text=LOGGED_IN_PAGE))
        old = Account(id=1, email="old@example.com", api_token="old-token", cookie_str="idle_session=OLD")
        accounts = InMemoryAccountRepository([old])
        game = build_session(server, accounts)
        self.assertTrue(game.session.load_account(old))

        server.route(
            "GET",
            "/",
            httpx.Response(200, text=game_page()),
            httpx.Response(200, text=game_page(api_token="new-token", character_id="601")),
        )
        server.route(
            "POST",
            "/login",
            httpx.Response(200, text="<html>dashboard</html>", headers={"Set-Cookie": "idle_session=NEW; Path=/"}),
        )
        sent_before = len(server.requests)

        added = game.session.add_account("new@example.com", "pw", lambda challenge: 0)

        first = server.requests[sent_before]
        self.assertEqual("/", first.url.path)
        self.assertNotIn("authorization", first.headers)
        self.assertNotIn("cookie", first.headers)
        self.assertEqual("new-token", added.api_token)
        self.assertEqual("idle_session=NEW", added.cookie_str)
        self.assertEqual(["old-token", "new-token"], [account.api_token for account in accounts.list_all()])
        game.close()


if __name__ == "__main__":
    unittest.main()
