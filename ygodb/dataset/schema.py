"""
Column schemas for every dataset kind.

Each schema fixes the column order, names the id column and knows how to turn
a record into field values and back. Card rows always span all 23 columns:
the variant-specific columns are driven by CARD_COLUMN_FILLERS, and a column a
variant has no filler for is written empty.
"""

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from ygodb.dataset.codec import (
    join_row,
    parse_bool,
    parse_optional_int,
    split_row,
    to_field,
    to_json_field,
)
from ygodb.models.card import (
    Attribute,
    Card,
    CardImage,
    CardType,
    LevelType,
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

R = TypeVar("R")


@dataclass(frozen=True)
class TsvSchema(Generic[R]):
    """
    Fixed column layout for one dataset kind.

    Attributes:
        name: Dataset kind, used in logs and checkpoint names
        columns: Header names in file order
        id_column: Column holding the record id
        to_fields: Record -> unescaped field values (one per column)
        from_fields: Unescaped field values -> record
        updated_at_column: Column compared for change detection, if any
    """

    name: str
    columns: tuple[str, ...]
    id_column: str
    to_fields: Callable[[R], list[str]]
    from_fields: Callable[[list[str]], R]
    updated_at_column: str | None = None

    @property
    def width(self) -> int:
        return len(self.columns)

    @property
    def id_index(self) -> int:
        return self.columns.index(self.id_column)

    @property
    def updated_at_index(self) -> int | None:
        if self.updated_at_column is None:
            return None
        return self.columns.index(self.updated_at_column)

    @property
    def header(self) -> str:
        return join_row(self.columns)

    def record_id(self, record: R) -> str:
        return self.to_fields(record)[self.id_index]

    def encode(self, record: R) -> str:
        """Record -> escaped TSV line."""
        fields = self.to_fields(record)
        if len(fields) != self.width:
            raise ValueError(
                f"{self.name} row has {len(fields)} fields, expected {self.width}"
            )
        return join_row(fields)

    def decode(self, line: str) -> R:
        """
        Escaped TSV line -> record.

        Raises:
            ValueError: If the row content cannot be mapped back to a record
        """
        return self.from_fields(split_row(line, self.width))


# =============================================================================
# CARDS
# =============================================================================

CARD_COLUMNS = (
    "cardType",
    "name",
    "nameModified",
    "ruby",
    "cardId",
    "ciid",
    "imgs",
    "text",
    "biko",
    "isNotLegalForOfficial",
    # monster
    "attribute",
    "levelType",
    "levelValue",
    "race",
    "monsterTypes",
    "atk",
    "def",
    "linkMarkers",
    "pendulumScale",
    "pendulumText",
    "isExtraDeck",
    # spell / trap
    "spellEffectType",
    "trapEffectType",
)

Filler = Callable[[Any], str]


def _images_field(card: Card) -> str:
    return json.dumps(
        [{"ciid": image.ciid, "imgHash": image.img_hash} for image in card.images],
        ensure_ascii=False,
        separators=(",", ":"),
    )


_COMMON_FILLERS: dict[str, Filler] = {
    "cardType": lambda card: to_field(card.card_type),
    "name": lambda card: card.name,
    "nameModified": lambda card: card.normalized_name,
    "ruby": lambda card: to_field(card.ruby),
    "cardId": lambda card: card.card_id,
    "ciid": lambda card: card.ciid,
    "imgs": _images_field,
    "text": lambda card: to_field(card.text),
    "biko": lambda card: to_field(card.biko),
    "isNotLegalForOfficial": lambda card: to_field(card.is_not_legal_for_official),
}

_MONSTER_FILLERS: dict[str, Filler] = {
    "attribute": lambda card: to_field(card.attribute),
    "levelType": lambda card: to_field(card.level_type),
    "levelValue": lambda card: to_field(card.level_value),
    "race": lambda card: to_field(card.race),
    "monsterTypes": lambda card: to_json_field(card.monster_types),
    "atk": lambda card: to_field(card.atk),
    "def": lambda card: to_field(card.defense),
    "linkMarkers": lambda card: to_field(card.link_markers),
    "pendulumScale": lambda card: to_field(card.pendulum_scale),
    "pendulumText": lambda card: to_field(card.pendulum_text),
    "isExtraDeck": lambda card: to_field(card.is_extra_deck),
}

CARD_COLUMN_FILLERS: Mapping[CardType, Mapping[str, Filler]] = MappingProxyType(
    {
        CardType.MONSTER: MappingProxyType({**_COMMON_FILLERS, **_MONSTER_FILLERS}),
        CardType.SPELL: MappingProxyType(
            {
                **_COMMON_FILLERS,
                "spellEffectType": lambda card: to_field(card.effect_type),
            }
        ),
        CardType.TRAP: MappingProxyType(
            {
                **_COMMON_FILLERS,
                "trapEffectType": lambda card: to_field(card.effect_type),
            }
        ),
    }
)


def card_to_fields(card: Card) -> list[str]:
    fillers = CARD_COLUMN_FILLERS[card.card_type]
    return [fillers[column](card) if column in fillers else "" for column in CARD_COLUMNS]


def _stat_from_field(value: str) -> int | str | None:
    if not value:
        return None
    return int(value) if value.isdigit() else value


def card_from_fields(fields: Sequence[str]) -> Card:
    """
    Rebuild a card from its 23 unescaped fields.

    The layout has no column for limit_regulation, so decoded cards always
    carry None there; a card parsed with a regulation does not round-trip it.

    Raises:
        ValueError: Unknown card type or enum value, or malformed JSON/int columns
    """
    row = dict(zip(CARD_COLUMNS, fields, strict=False))

    try:
        images = tuple(
            CardImage(ciid=str(image["ciid"]), img_hash=str(image["imgHash"]))
            for image in json.loads(row["imgs"] or "[]")
        )
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise ValueError(f"Invalid imgs column for card {row['cardId']}: {e}") from e

    common: dict[str, Any] = {
        "name": row["name"],
        "card_id": row["cardId"],
        "ciid": row["ciid"],
        "images": images,
        "ruby": row["ruby"] or None,
        "text": row["text"] or None,
        "biko": row["biko"] or None,
        "is_not_legal_for_official": parse_bool(row["isNotLegalForOfficial"]),
    }

    card_type = CardType(row["cardType"])
    if card_type is CardType.SPELL:
        effect = row["spellEffectType"]
        return SpellCard(
            **common,
            effect_type=SpellEffectType(effect) if effect else SpellEffectType.NORMAL,
        )
    if card_type is CardType.TRAP:
        effect = row["trapEffectType"]
        return TrapCard(
            **common,
            effect_type=TrapEffectType(effect) if effect else TrapEffectType.NORMAL,
        )

    try:
        raw_types = json.loads(row["monsterTypes"] or "[]")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid monsterTypes column for card {row['cardId']}: {e}") from e
    monster_types = tuple(MonsterType(value) for value in raw_types)

    return MonsterCard(
        **common,
        attribute=Attribute(row["attribute"]),
        level_type=LevelType(row["levelType"]),
        level_value=int(row["levelValue"]),
        race=Race(row["race"]),
        monster_types=monster_types,
        atk=_stat_from_field(row["atk"]),
        defense=_stat_from_field(row["def"]),
        link_markers=parse_optional_int(row["linkMarkers"]),
        pendulum_scale=parse_optional_int(row["pendulumScale"]),
        pendulum_text=row["pendulumText"] or None,
        is_extra_deck=parse_bool(row["isExtraDeck"]),
    )


CARD_SCHEMA: TsvSchema[Card] = TsvSchema(
    name="cards",
    columns=CARD_COLUMNS,
    id_column="cardId",
    to_fields=card_to_fields,
    from_fields=card_from_fields,
)


# =============================================================================
# FAQ
# =============================================================================

FAQ_COLUMNS = ("faqId", "question", "answer", "updatedAt")


def faq_to_fields(faq: FaqEntry) -> list[str]:
    return [faq.faq_id, faq.question, faq.answer, to_field(faq.updated_at)]


def faq_from_fields(fields: Sequence[str]) -> FaqEntry:
    faq_id, question, answer, updated_at = fields[:4]
    return FaqEntry(
        faq_id=faq_id, question=question, answer=answer, updated_at=updated_at or None
    )


FAQ_SCHEMA: TsvSchema[FaqEntry] = TsvSchema(
    name="faq",
    columns=FAQ_COLUMNS,
    id_column="faqId",
    to_fields=faq_to_fields,
    from_fields=faq_from_fields,
    updated_at_column="updatedAt",
)


# =============================================================================
# CARD SUPPLEMENTS
# =============================================================================

SUPPLEMENT_COLUMNS = (
    "cardId",
    "cardName",
    "supplementInfo",
    "supplementDate",
    "pendulumSupplementInfo",
    "pendulumSupplementDate",
)


def supplement_to_fields(entry: CardSupplement) -> list[str]:
    return [
        entry.card_id,
        entry.card_name,
        to_field(entry.supplement_info),
        to_field(entry.supplement_date),
        to_field(entry.pendulum_supplement_info),
        to_field(entry.pendulum_supplement_date),
    ]


def supplement_from_fields(fields: Sequence[str]) -> CardSupplement:
    card_id, card_name, info, date, pen_info, pen_date = fields[:6]
    return CardSupplement(
        card_id=card_id,
        card_name=card_name,
        supplement_info=info or None,
        supplement_date=date or None,
        pendulum_supplement_info=pen_info or None,
        pendulum_supplement_date=pen_date or None,
    )


SUPPLEMENT_SCHEMA: TsvSchema[CardSupplement] = TsvSchema(
    name="details",
    columns=SUPPLEMENT_COLUMNS,
    id_column="cardId",
    to_fields=supplement_to_fields,
    from_fields=supplement_from_fields,
)


# =============================================================================
# FAQ ID LIST
# =============================================================================

FAQ_ID_SCHEMA: TsvSchema[str] = TsvSchema(
    name="faqids",
    columns=("faqId",),
    id_column="faqId",
    to_fields=lambda faq_id: [faq_id],
    from_fields=lambda fields: fields[0],
)
