"""
Card storage for a SQL database and an in-memory implementation.
"""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from cardadmin.config import StorageConfig
from cardadmin.errors import StorageError
from cardadmin.schemas import Card, CardCreate

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 5


class CardStore(Protocol):
    """Interface for card persistence."""

    def create(self, payload: CardCreate) -> Card:
        ...

    def get_by_id(self, card_id: str) -> Optional[Card]:
        ...

    def get_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Card]:
        ...

    def get_all(self) -> list[Card]:
        ...


def _effective_limit(limit: Optional[int]) -> int:
    if not limit or limit <= 0:
        return DEFAULT_RECENT_LIMIT
    return limit


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryCardStore:
    """Dict-backed store for development and tests. Not durable."""

    def __init__(self, clock: Callable[[], datetime] = _now):
        self._clock = clock
        self.cards: Dict[str, Card] = {}
        self._order: Dict[str, int] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def create(self, payload: CardCreate) -> Card:
        now = self._clock()
        card = Card(
            id=uuid.uuid4().hex,
            cree_a=now,
            modifie_a=now,
            **payload.model_dump(),
        )
        with self._lock:
            self.cards[card.id] = card
            self._order[card.id] = next(self._seq)
        return card

    def get_by_id(self, card_id: str) -> Optional[Card]:
        return self.cards.get(card_id)

    def get_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Card]:
        return self.get_all()[: _effective_limit(limit)]

    def get_all(self) -> list[Card]:
        with self._lock:
            cards = list(self.cards.values())
            order = dict(self._order)
        # Cards created within the same clock tick keep insertion order.
        return sorted(
            cards, key=lambda card: (card.cree_a, order[card.id]), reverse=True
        )

    def reset(self) -> None:
        """Clear all stored cards (useful in tests)."""
        with self._lock:
            self.cards.clear()
            self._order.clear()


class SqlCardStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(
        self,
        database_url: str,
        clock: Callable[[], datetime] = _now,
        **engine_kwargs,
    ):
        self._clock = clock
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlCardStore")
        engine_kwargs.setdefault("pool_pre_ping", True)
        engine_kwargs.setdefault("pool_recycle", 1800)
        self.engine = create_engine(database_url, future=True, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.exception("Could not initialize the cards table")
            raise StorageError(f"Failed to initialize storage: {exc}") from exc

    def _to_card(self, row: "CardRow") -> Card:
        return Card(
            id=row.id,
            titre=row.titre,
            effet=row.effet,
            categorie=row.categorie,
            alignement=row.alignement,
            visibilite_defaut=row.visibilite_defaut,
            rarete=row.rarete,
            comportement_revelation=row.comportement_revelation,
            actif=row.actif,
            cree_a=_as_utc(row.cree_a),
            modifie_a=_as_utc(row.modifie_a),
        )

    def create(self, payload: CardCreate) -> Card:
        now = self._clock()
        try:
            with self.Session() as session:
                row = CardRow(
                    id=uuid.uuid4().hex,
                    cree_a=now,
                    modifie_a=now,
                    **payload.model_dump(),
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_card(row)
        except SQLAlchemyError as exc:
            logger.exception("Failed to create card")
            raise StorageError(f"Failed to create card: {exc}") from exc

    def get_by_id(self, card_id: str) -> Optional[Card]:
        try:
            with self.Session() as session:
                row = session.execute(
                    select(CardRow).where(CardRow.id == card_id)
                ).scalar_one_or_none()
                if not row:
                    return None
                return self._to_card(row)
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch card %s", card_id)
            raise StorageError(f"Failed to fetch card: {exc}") from exc

    def get_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Card]:
        return self._list(limit=_effective_limit(limit))

    def get_all(self) -> list[Card]:
        return self._list()

    def _list(self, limit: Optional[int] = None) -> list[Card]:
        stmt = select(CardRow).order_by(CardRow.cree_a.desc(), CardRow.seq.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.Session() as session:
                rows = session.execute(stmt).scalars().all()
                return [self._to_card(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch cards")
            raise StorageError(f"Failed to fetch cards: {exc}") from exc


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_card_store(config: StorageConfig) -> CardStore:
    if config.use_database:
        logger.info("Using SQL card store")
        return SqlCardStore(config.database_url)
    logger.info("Using in-memory card store")
    return InMemoryCardStore()


Base = declarative_base()


class CardRow(Base):
    __tablename__ = "cartes"

    # Insertion order; breaks ties between cards created in the same instant.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, index=True)
    titre = Column(Text, nullable=False)
    effet = Column(Text, nullable=False)
    categorie = Column(String, nullable=False)
    alignement = Column(String, nullable=False)
    visibilite_defaut = Column(String, nullable=False)
    rarete = Column(String, nullable=True)
    comportement_revelation = Column(String, nullable=False)
    actif = Column(Boolean, nullable=False, default=True)
    cree_a = Column(DateTime(timezone=True), nullable=False, index=True)
    modifie_a = Column(DateTime(timezone=True), nullable=False)
