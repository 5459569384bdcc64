"""
Python client for the card admin API.

Mirrors what the admin UI does: check the auth status, log in with the
shared password, validate the creation form locally with the same schema
the server uses, and sort the card list on the client side.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from cardadmin.errors import (
    AuthenticationError,
    CardAdminError,
    CardValidationError,
    FieldError,
    NotFoundError,
)
from cardadmin.schemas import extract_card_fields, validate_card_input

SORT_FIELDS = ("titre", "categorie", "alignement", "rarete", "cree_a")


class CardAdminClientError(CardAdminError):
    """The server answered with an unexpected error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


def sort_cards(
    cards: list[dict], sort_by: str = "cree_a", direction: str = "desc"
) -> list[dict]:
    """
    Sort cards locally, the way the card list view does.

    Values compare as lowercase strings and missing values sort as "".
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {sort_by!r}; expected one of {SORT_FIELDS}")
    if direction not in ("asc", "desc"):
        raise ValueError("direction must be 'asc' or 'desc'")

    def key(card: dict) -> str:
        value = card.get(sort_by)
        return "" if value is None else str(value).lower()

    return sorted(cards, key=key, reverse=direction == "desc")


class CardAdminClient:
    def __init__(self, base_url: str = "", session: Optional[Any] = None):
        self.base_url = base_url.rstrip("/")
        # Anything with requests' get/post surface works, e.g. a TestClient.
        self.session = session if session is not None else requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api{path}"

    def _check(self, response) -> Any:
        if response.status_code < 400:
            return response.json()
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") or f"HTTP {response.status_code}"
        if response.status_code == 401:
            raise AuthenticationError(message)
        if response.status_code == 404:
            raise NotFoundError(message)
        if response.status_code == 400:
            errors = [FieldError(**err) for err in body.get("errors") or []]
            raise CardValidationError(
                errors or [FieldError("__root__", message, "invalid")]
            )
        raise CardAdminClientError(message, response.status_code)

    def auth_status(self) -> bool:
        response = self.session.get(self._url("/auth/status"))
        return bool(self._check(response)["authenticated"])

    def login(self, password: str) -> None:
        response = self.session.post(self._url("/auth/login"), json={"password": password})
        self._check(response)

    def logout(self) -> None:
        self._check(self.session.post(self._url("/auth/logout")))

    def create_card(self, fields: Mapping[str, Any]) -> dict:
        """
        Validate `fields` locally, then submit them.

        Raises CardValidationError without contacting the server when the
        form is invalid.
        """
        form = extract_card_fields(fields)
        validate_card_input(form)
        response = self.session.post(self._url("/cards"), json=form)
        return self._check(response)["card"]

    def list_cards(self, sort_by: str = "cree_a", direction: str = "desc") -> list[dict]:
        cards = self._check(self.session.get(self._url("/cards")))
        return sort_cards(cards, sort_by, direction)

    def recent_cards(self, limit: int = 5) -> list[dict]:
        response = self.session.get(self._url("/cards/recent"), params={"limit": limit})
        return self._check(response)

    def get_card(self, card_id: str) -> dict:
        return self._check(self.session.get(self._url(f"/cards/{card_id}")))
