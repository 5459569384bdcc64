"""
Dependency wiring for the FastAPI app.

The card store, session store and cookie signer are built once by
`init_dependencies` and kept on `app.state`. Route handlers receive them
through the getters below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, Request

from cardadmin.config import DEV_SESSION_SECRET, Settings, StorageConfig
from cardadmin.db import CardStore, build_card_store
from cardadmin.errors import AuthenticationError
from cardadmin.sessions import (
    InMemorySessionStore,
    SessionSigner,
    SessionState,
    SessionStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    settings: Settings
    card_store: CardStore
    session_store: SessionStore
    signer: SessionSigner


def init_dependencies(
    app: FastAPI,
    settings: Settings,
    *,
    card_store: Optional[CardStore] = None,
    session_store: Optional[SessionStore] = None,
) -> Dependencies:
    """Build the shared services once and attach them to the app."""
    if settings.session_secret == DEV_SESSION_SECRET:
        logger.warning("SESSION_SECRET is not set; using the development secret")
    if not settings.form_password:
        logger.warning("FORM_PASSWORD is not set; every login will be refused")

    if card_store is None:
        card_store = build_card_store(StorageConfig.from_settings(settings))
    if session_store is None:
        session_store = InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)

    deps = Dependencies(
        settings=settings,
        card_store=card_store,
        session_store=session_store,
        signer=SessionSigner(settings.session_secret),
    )
    app.state.deps = deps
    return deps


def get_dependencies(request: Request) -> Dependencies:
    return request.app.state.deps


def get_card_store(deps: Dependencies = Depends(get_dependencies)) -> CardStore:
    return deps.card_store


def get_session_state(
    request: Request, deps: Dependencies = Depends(get_dependencies)
) -> SessionState:
    """Look up the caller's session from the cookie. Never fails."""
    token = request.cookies.get(deps.settings.session_cookie_name)
    if not token:
        return SessionState.anonymous()
    session_id = deps.signer.unsign(token)
    if session_id is None:
        return SessionState.anonymous()
    return deps.session_store.get(session_id) or SessionState.anonymous()


def require_auth(
    session: SessionState = Depends(get_session_state),
) -> SessionState:
    if not session.authenticated:
        raise AuthenticationError()
    return session
