from datetime import datetime, timedelta, timezone


def card_fields(**overrides) -> dict:
    fields = {
        "titre": "Healing Light",
        "effet": "Restore two cards to your hand",
        "categorie": "basic",
        "alignement": "blessed",
        "visibilite_defaut": "face_up",
        "rarete": "common",
        "comportement_revelation": "on_view_owner",
    }
    fields.update(overrides)
    return fields


class TickingClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current
