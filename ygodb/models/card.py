"""
Card records parsed from the card search result list.

A card is one of three variants sharing a common base: MonsterCard, SpellCard
and TrapCard. The variant is exposed as the ``card_type`` class attribute so a
serializer can dispatch on it without isinstance chains.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from ygodb.normalize import normalize_for_search


class CardType(str, Enum):
    MONSTER = "monster"
    SPELL = "spell"
    TRAP = "trap"


class LevelType(str, Enum):
    LEVEL = "level"
    RANK = "rank"
    LINK = "link"


class LimitRegulation(str, Enum):
    FORBIDDEN = "forbidden"
    LIMITED = "limited"
    SEMI_LIMITED = "semi-limited"


class Attribute(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    WATER = "water"
    FIRE = "fire"
    EARTH = "earth"
    WIND = "wind"
    DIVINE = "divine"


class Race(str, Enum):
    DRAGON = "dragon"
    WARRIOR = "warrior"
    SPELLCASTER = "spellcaster"
    FAIRY = "fairy"
    FIEND = "fiend"
    ZOMBIE = "zombie"
    MACHINE = "machine"
    AQUA = "aqua"
    PYRO = "pyro"
    ROCK = "rock"
    WINDBEAST = "windbeast"
    PLANT = "plant"
    INSECT = "insect"
    THUNDER = "thunder"
    BEAST = "beast"
    BEASTWARRIOR = "beastwarrior"
    DINOSAUR = "dinosaur"
    FISH = "fish"
    SEASERPENT = "seaserpent"
    REPTILE = "reptile"
    PSYCHIC = "psychic"
    DIVINE = "divine"
    CREATORGOD = "creatorgod"
    WYRM = "wyrm"
    CYBERSE = "cyberse"
    ILLUSION = "illusion"


class MonsterType(str, Enum):
    NORMAL = "normal"
    EFFECT = "effect"
    FUSION = "fusion"
    RITUAL = "ritual"
    SYNCHRO = "synchro"
    XYZ = "xyz"
    PENDULUM = "pendulum"
    LINK = "link"
    TUNER = "tuner"
    SPIRIT = "spirit"
    UNION = "union"
    GEMINI = "gemini"
    FLIP = "flip"
    TOON = "toon"
    SPECIAL = "special"


class SpellEffectType(str, Enum):
    NORMAL = "normal"
    QUICK = "quick"
    CONTINUOUS = "continuous"
    EQUIP = "equip"
    FIELD = "field"
    RITUAL = "ritual"


class TrapEffectType(str, Enum):
    NORMAL = "normal"
    CONTINUOUS = "continuous"
    COUNTER = "counter"


@dataclass(frozen=True, slots=True)
class CardImage:
    """One artwork of a card: image variant id plus the site's image hash."""

    ciid: str
    img_hash: str


@dataclass(frozen=True, slots=True, kw_only=True)
class CardBase:
    """
    Fields shared by every card variant.

    Attributes:
        name: Card name as displayed
        card_id: Numeric site id kept as a string (stable identity)
        ciid: Image variant id of the listed artwork
        images: Known artworks, in page order
        ruby: Phonetic reading of the name
        text: Effect or flavor text, line breaks preserved
        limit_regulation: Forbidden/limited status when the row shows one
        biko: Free-text remarks
        is_not_legal_for_official: Remarks say the card cannot be used in official play
    """

    card_type: ClassVar[CardType]

    name: str
    card_id: str
    ciid: str
    images: tuple[CardImage, ...] = ()
    ruby: str | None = None
    text: str | None = None
    limit_regulation: LimitRegulation | None = None
    biko: str | None = None
    is_not_legal_for_official: bool = False

    @property
    def normalized_name(self) -> str:
        """Search key derived from the name."""
        return normalize_for_search(self.name)


@dataclass(frozen=True, slots=True, kw_only=True)
class MonsterCard(CardBase):
    """
    A monster card.

    ``atk`` and ``defense`` are integers, or the literal token ("?", "X") when the
    card prints a variable value. ``link_markers`` is a bitmask where bit n-1 is set
    for an arrow pointing in numpad direction n (5 is never used).
    """

    card_type: ClassVar[CardType] = CardType.MONSTER

    attribute: Attribute
    level_type: LevelType
    level_value: int
    race: Race
    monster_types: tuple[MonsterType, ...] = ()
    atk: int | str | None = None
    defense: int | str | None = None
    link_markers: int | None = None
    pendulum_scale: int | None = None
    pendulum_text: str | None = None
    is_extra_deck: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class SpellCard(CardBase):
    card_type: ClassVar[CardType] = CardType.SPELL

    effect_type: SpellEffectType = SpellEffectType.NORMAL


@dataclass(frozen=True, slots=True, kw_only=True)
class TrapCard(CardBase):
    card_type: ClassVar[CardType] = CardType.TRAP

    effect_type: TrapEffectType = TrapEffectType.NORMAL


Card = MonsterCard | SpellCard | TrapCard
