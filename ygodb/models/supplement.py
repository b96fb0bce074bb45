from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CardSupplement:
    """
    Official supplementary rulings attached to a card.

    Pendulum monsters carry a second block for their pendulum effect.
    Card references are inlined as ``{{name|cardId}}``.
    """

    card_id: str
    card_name: str
    supplement_info: str | None = None
    supplement_date: str | None = None
    pendulum_supplement_info: str | None = None
    pendulum_supplement_date: str | None = None

    @property
    def has_supplement(self) -> bool:
        return self.supplement_info is not None

    @property
    def has_pendulum_supplement(self) -> bool:
        return self.pendulum_supplement_info is not None
