import sys
from pathlib import Path
import unittest

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from game_server_stub import (
    FakeGameServer,
    api_path,
    build_session,
    character_payload,
    form_body,
    game_page,
    json_body,
    serve_world,
)
from idlemmo.domain.models.character import Character
from idlemmo.domain.models.skill import SkillType
from idlemmo.errors import DecodeError, ParseError, SessionStateError


class CharacterServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeGameServer()
        self.game = build_session(self.server)

    def tearDown(self) -> None:
        self.game.close()

    def test_information_requires_a_page(self) -> None:
        with self.assertRaises(SessionStateError):
            self.game.characters.get_character_information()

    def test_information_overlays_scraped_skill_levels(self) -> None:
        serve_world(self.server, page=game_page(skill_levels={"woodcutting": 31, "meditation": 2}))
        self.game.world.refresh()

        info = self.game.characters.get_character_information()

        self.assertEqual("Aria", info.name)
        self.assertEqual(31, info.skill_level(SkillType.WOODCUTTING))
        self.assertEqual(2, info.skill_level(SkillType.MEDITATION))
        self.assertEqual(0, info.skill_level(SkillType.MINING))
        request = self.server.requests_to(api_path("character_information"))[-1]
        self.assertEqual({}, json_body(request))
        self.assertIn("signature=sig-info", str(request.url))

    def test_missing_endpoint_is_a_parse_error(self) -> None:
        serve_world(self.server)
        self.game.world.refresh()
        self.game.state.replace_snapshot(game_page(endpoints=False), "csrf")

        with self.assertRaises(ParseError):
            self.game.characters.get_character_information()

    def test_malformed_record_is_a_decode_error(self) -> None:
        serve_world(self.server)
        self.game.world.refresh()
        self.server.route("POST", api_path("character_information"), httpx.Response(200, json={"id": "x"}))

        with self.assertRaises(DecodeError):
            self.game.characters.get_character_information()

    def test_get_all_characters(self) -> None:
        serve_world(self.server)
        self.server.route(
            "POST",
            api_path("characters_all"),
            httpx.Response(
                200,
                json={
                    "characters": [
                        {"id": 501, "name": "Aria", "class_name": "Warrior", "level": 10, "is_current": True},
                        {"id": 502, "name": "Brin", "class_name": "Mage", "level": 4, "is_current": False},
                    ]
                },
            ),
        )
        self.game.world.refresh()

        characters = self.game.characters.get_all_characters()

        self.assertEqual(["Aria", "Brin"], [character.name for character in characters])
        self.assertTrue(characters[0].is_current)

    def test_switch_skips_current_character(self) -> None:
        serve_world(self.server)
        self.game.world.refresh()
        sent_before = len(self.server.requests)

        switched = self.game.switch_character(Character(id=501, name="Aria", is_current=True))

        self.assertFalse(switched)
        self.assertEqual(sent_before, len(self.server.requests))

    def test_switch_posts_form_and_refreshes(self) -> None:
        serve_world(self.server)
        self.server.route("POST", "/user/character/switch/502", httpx.Response(200, text="ok"))
        self.game.world.refresh()
        self.server.route("POST", api_path("character_information"), httpx.Response(200, json=character_payload(id=502, name="Brin")))

        switched = self.game.switch_character(Character(id=502, name="Brin"))

        self.assertTrue(switched)
        request = self.server.requests_to("/user/character/switch/502")[0]
        self.assertEqual({"_token": "csrf-token-0001", "return_to_current_page": "false"}, form_body(request))
        self.assertEqual("Brin", self.game.state.character_info.name)


if __name__ == "__main__":
    unittest.main()
