import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from cardadmin.app import create_app
from cardadmin.client import CardAdminClient, CardAdminClientError, sort_cards
from cardadmin.config import Settings
from cardadmin.db import InMemoryCardStore
from cardadmin.errors import AuthenticationError, CardValidationError, NotFoundError
from cardadmin.tests.helpers import TickingClock, card_fields

PASSWORD = "letmein"


class CardAdminClientTests(unittest.TestCase):
    def setUp(self):
        settings = Settings(
            form_password=PASSWORD,
            session_secret="test-session-secret",
            use_in_memory_backends=True,
        )
        self.store = InMemoryCardStore(clock=TickingClock())
        self.http = TestClient(create_app(settings, card_store=self.store))
        self.client = CardAdminClient(session=self.http)

    def test_login_flow(self):
        self.assertFalse(self.client.auth_status())
        with self.assertRaises(AuthenticationError):
            self.client.login("wrong")
        self.assertFalse(self.client.auth_status())

        self.client.login(PASSWORD)
        self.assertTrue(self.client.auth_status())

        self.client.logout()
        self.assertFalse(self.client.auth_status())
        with self.assertRaises(AuthenticationError):
            self.client.list_cards()

    def test_create_and_fetch(self):
        self.client.login(PASSWORD)
        card = self.client.create_card(card_fields(titre="Shield", extra="dropped"))
        self.assertEqual(card["titre"], "Shield")
        self.assertEqual(self.client.get_card(card["id"])["id"], card["id"])
        self.assertEqual([c["id"] for c in self.client.recent_cards(1)], [card["id"]])
        with self.assertRaises(NotFoundError):
            self.client.get_card("missing")

    def test_invalid_form_is_rejected_locally(self):
        session = MagicMock()
        client = CardAdminClient(session=session)
        with self.assertRaises(CardValidationError) as ctx:
            client.create_card(card_fields(titre="", categorie="special", rarete="rare"))
        self.assertIn("titre", ctx.exception.fields)
        session.post.assert_not_called()

    def test_special_card_with_rarity_is_rejected_by_form(self):
        session = MagicMock()
        client = CardAdminClient(session=session)
        with self.assertRaises(CardValidationError) as ctx:
            client.create_card(card_fields(categorie="special", rarete="rare"))
        self.assertEqual(ctx.exception.fields, ["rarete"])
        session.post.assert_not_called()

    def test_list_cards_fetches_once_and_sorts_locally(self):
        self.client.login(PASSWORD)
        for title in ("banana", "Apple", "cherry"):
            self.client.create_card(card_fields(titre=title))

        cards = self.client.list_cards()
        self.assertEqual([c["titre"] for c in cards], ["cherry", "Apple", "banana"])

        by_title = sort_cards(cards, "titre", "asc")
        self.assertEqual([c["titre"] for c in by_title], ["Apple", "banana", "cherry"])

    def test_server_errors_surface(self):
        response = MagicMock(status_code=500)
        response.json.return_value = {"message": "Internal server error"}
        session = MagicMock()
        session.get.return_value = response
        client = CardAdminClient("http://admin.example", session=session)
        with self.assertRaises(CardAdminClientError) as ctx:
            client.list_cards()
        self.assertEqual(ctx.exception.status_code, 500)
        session.get.assert_called_once_with("http://admin.example/api/cards")


class SortCardsTests(unittest.TestCase):
    def test_nulls_sort_as_empty(self):
        cards = [{"rarete": "rare"}, {"rarete": None}, {"rarete": "common"}]
        self.assertEqual(
            [c["rarete"] for c in sort_cards(cards, "rarete", "asc")],
            [None, "common", "rare"],
        )
        self.assertEqual(
            [c["rarete"] for c in sort_cards(cards, "rarete", "desc")],
            ["rare", "common", None],
        )

    def test_rejects_unknown_sort_field(self):
        with self.assertRaises(ValueError):
            sort_cards([], "effet")
        with self.assertRaises(ValueError):
            sort_cards([], "titre", "sideways")

    def test_does_not_mutate_input(self):
        cards = [{"titre": "b"}, {"titre": "a"}]
        sort_cards(cards, "titre", "asc")
        self.assertEqual(cards, [{"titre": "b"}, {"titre": "a"}])


if __name__ == "__main__":
    unittest.main()
