from ygodb.models.card import (
    Attribute,
    Card,
    CardBase,
    CardImage,
    CardType,
    LevelType,
    LimitRegulation,
    MonsterCard,
    MonsterType,
    Race,
    SpellCard,
    SpellEffectType,
    TrapCard,
    TrapEffectType,
)
from ygodb.models.faq import FaqEntry
from ygodb.models.supplement import CardSupplement

__all__ = [
    "Attribute",
    "Card",
    "CardBase",
    "CardImage",
    "CardSupplement",
    "CardType",
    "FaqEntry",
    "LevelType",
    "LimitRegulation",
    "MonsterCard",
    "MonsterType",
    "Race",
    "SpellCard",
    "SpellEffectType",
    "TrapCard",
    "TrapEffectType",
]
