"""
HTTP routes for the card admin API.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response

from cardadmin.db import DEFAULT_RECENT_LIMIT, CardStore
from cardadmin.dependencies import (
    Dependencies,
    get_card_store,
    get_dependencies,
    get_session_state,
    require_auth,
)
from cardadmin.errors import (
    AuthenticationError,
    CardValidationError,
    ConfigurationError,
    FieldError,
    NotFoundError,
    SessionStoreError,
)
from cardadmin.schemas import (
    AuthStatusResponse,
    Card,
    CreateCardResponse,
    LoginRequest,
    SuccessResponse,
    normalize_card_input,
    validate_card_input,
)
from cardadmin.sessions import SessionState, check_password

logger = logging.getLogger(__name__)

LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

auth_router = APIRouter(prefix="/auth", tags=["auth"])
cards_router = APIRouter(
    prefix="/cards", tags=["cards"], dependencies=[Depends(require_auth)]
)


@auth_router.post("/login", response_model=SuccessResponse)
def login(
    payload: LoginRequest,
    response: Response,
    deps: Dependencies = Depends(get_dependencies),
    session: SessionState = Depends(get_session_state),
):
    try:
        check_password(deps.settings.form_password, payload.password)
    except ConfigurationError:
        logger.error("Login refused: FORM_PASSWORD is not configured")
        raise
    except AuthenticationError:
        logger.warning("Rejected login attempt")
        raise

    deps.session_store.prune_expired()
    if session.session_id:
        deps.session_store.destroy(session.session_id)
    new_session = deps.session_store.create(authenticated=True)
    response.set_cookie(
        key=deps.settings.session_cookie_name,
        value=deps.signer.sign(new_session.session_id),
        max_age=deps.settings.session_ttl_seconds,
        httponly=True,
        samesite="strict",
        secure=deps.settings.session_cookie_secure,
    )
    logger.info("Admin session opened")
    return SuccessResponse()


@auth_router.post("/logout", response_model=SuccessResponse)
def logout(
    response: Response,
    deps: Dependencies = Depends(get_dependencies),
    session: SessionState = Depends(get_session_state),
):
    if session.session_id:
        try:
            deps.session_store.destroy(session.session_id)
        except Exception as exc:
            logger.exception("Failed to destroy session on logout")
            raise SessionStoreError(str(exc)) from exc
        logger.info("Admin session closed")
    response.delete_cookie(
        key=deps.settings.session_cookie_name,
        httponly=True,
        samesite="strict",
        secure=deps.settings.session_cookie_secure,
    )
    return SuccessResponse()


@auth_router.get("/status", response_model=AuthStatusResponse)
def auth_status(session: SessionState = Depends(get_session_state)):
    return AuthStatusResponse(authenticated=session.authenticated)


@cards_router.post("", response_model=CreateCardResponse)
def create_card(
    payload: Any = Body(None),
    store: CardStore = Depends(get_card_store),
):
    if not isinstance(payload, dict):
        raise CardValidationError(
            [FieldError("__root__", "Expected a JSON object", "invalid_type")]
        )
    card_input = validate_card_input(normalize_card_input(payload))
    card = store.create(card_input)
    logger.info("Created card %s", card.id)
    return CreateCardResponse(card=card)


def parse_limit(raw: Optional[str]) -> int:
    """Leading integer of `raw` ("3abc" is 3, "2.5" is 2). Zero or no digits means the default."""
    match = LEADING_INT.match(raw or "")
    if not match:
        return DEFAULT_RECENT_LIMIT
    return int(match.group(1)) or DEFAULT_RECENT_LIMIT


@cards_router.get("/recent", response_model=list[Card])
def list_recent_cards(
    limit: Optional[str] = Query(None),
    store: CardStore = Depends(get_card_store),
):
    return store.get_recent(parse_limit(limit))


@cards_router.get("", response_model=list[Card])
def list_cards(store: CardStore = Depends(get_card_store)):
    return store.get_all()


@cards_router.get("/{card_id}", response_model=Card)
def get_card(card_id: str, store: CardStore = Depends(get_card_store)):
    card = store.get_by_id(card_id)
    if card is None:
        raise NotFoundError("Card not found")
    return card
