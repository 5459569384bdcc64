"""
Pydantic schemas for cards and the auth endpoints.

`CardCreate` is the single source of truth for card input rules. The API
validates request bodies with it and the client validates form input with
it before submitting.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from cardadmin.errors import CardValidationError, FieldError


class Category(str, Enum):
    BASIC = "basic"
    SPECIAL = "special"


class Alignment(str, Enum):
    BLESSED = "blessed"
    CURSED = "cursed"


class Visibility(str, Enum):
    FACE_UP = "face_up"
    FACE_DOWN = "face_down"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


class RevealBehavior(str, Enum):
    ON_VIEW_OWNER = "on_view_owner"
    ON_STEAL_NEW_OWNER = "on_steal_new_owner"
    IMMEDIATE = "immediate"


# Fields a client may submit when creating a card. Anything else is dropped.
CARD_FIELDS = (
    "titre",
    "effet",
    "categorie",
    "alignement",
    "visibilite_defaut",
    "rarete",
    "comportement_revelation",
    "actif",
)

REQUIRED_MESSAGES = {
    "titre": "Title is required",
    "effet": "Effect description is required",
}

_ERROR_KINDS = {
    "missing": "required",
    "enum": "invalid_enum_value",
    "string_type": "invalid_type",
    "bool_type": "invalid_type",
}


class CardFields(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    titre: StrictStr
    effet: StrictStr
    categorie: Category
    alignement: Alignment
    visibilite_defaut: Visibility
    rarete: Optional[Rarity] = None
    comportement_revelation: RevealBehavior
    actif: StrictBool = True


class CardCreate(CardFields):
    """Validated payload for creating a card."""

    @field_validator("titre", "effet")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        if not value.strip():
            raise PydanticCustomError("blank", REQUIRED_MESSAGES[info.field_name])
        return value

    @model_validator(mode="after")
    def _special_cards_have_no_rarity(self) -> "CardCreate":
        if self.categorie == Category.SPECIAL.value and self.rarete is not None:
            raise PydanticCustomError(
                "special_card_rarity",
                "Rarity must be null for special cards",
                {"field": "rarete"},
            )
        return self


class Card(CardFields):
    """A stored card as returned by the stores and the API."""

    id: str
    cree_a: datetime
    modifie_a: datetime


def extract_card_fields(raw: Mapping[str, Any]) -> dict:
    """Keep only the whitelisted card fields from `raw`."""
    return {name: raw[name] for name in CARD_FIELDS if name in raw}


def normalize_card_input(raw: Mapping[str, Any]) -> dict:
    """
    Whitelist `raw` and clear the rarity of special cards.

    The server is lenient here: a rarity sent along with a special card is
    discarded instead of rejected.
    """
    fields = extract_card_fields(raw)
    if fields.get("categorie") == Category.SPECIAL.value:
        fields["rarete"] = None
    return fields


def _to_field_error(err: dict) -> FieldError:
    ctx = err.get("ctx") or {}
    loc = err.get("loc") or ()
    field = str(loc[0]) if loc else str(ctx.get("field", "__root__"))
    kind = _ERROR_KINDS.get(err["type"], err["type"])
    if kind == "required":
        message = REQUIRED_MESSAGES.get(field, "Field required")
    else:
        message = err["msg"]
    return FieldError(field=field, message=message, kind=kind)


def validate_card_input(raw: Mapping[str, Any]) -> CardCreate:
    """
    Validate a candidate card payload.

    Raises:
        CardValidationError: with one FieldError per offending field.
    """
    try:
        return CardCreate.model_validate(dict(raw))
    except ValidationError as exc:
        raise CardValidationError(
            [_to_field_error(err) for err in exc.errors()]
        ) from exc


class LoginRequest(BaseModel):
    # Non-string values fail the password check, not request validation.
    password: Any = ""


class SuccessResponse(BaseModel):
    success: Literal[True] = True


class AuthStatusResponse(BaseModel):
    authenticated: bool


class CreateCardResponse(BaseModel):
    ok: Literal[True] = True
    card: Card


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[list[dict]] = None
