"""
Parser for the card search result list.

Each card is a ``.t_row`` element of the result page. Rows are classified by
the attribute icon (spell, trap, or one of the monster attributes) and then
parsed by a variant-specific function.

Markup differs between monster kinds (level vs rank vs link, pendulum blocks),
so every field is optional unless it identifies the card. A row missing an
identifying field yields None and is skipped by the caller.
"""

import logging
import re
from dataclasses import dataclass

from bs4 import Tag

from ygodb.models.card import (
    Card,
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
from ygodb.parsers.dom import (
    ListingPage,
    attr_text,
    first_int,
    has_class,
    make_soup,
    text_with_breaks,
)
from ygodb.parsers.mappings import (
    map_attribute,
    map_monster_type,
    map_race,
    map_spell_effect,
    map_trap_effect,
)

logger = logging.getLogger(__name__)

# Image URLs embedded anywhere in the page:
# get_image.action?type=1&cid=4007&ciid=1&enc=abc123
IMAGE_URL_PATTERN = re.compile(
    r"get_image\.action\?[^'\"]*cid=(\d+)(?:&(?:amp;)?ciid=(\d+))?(?:&(?:amp;)?enc=([^&'\"\s]+))?"
)

# Hidden input value: /yugiohdb/card_search.action?ope=2&cid=4007
CARD_ID_PATTERN = re.compile(r"[?&]cid=(\d+)")

ATTRIBUTE_ICON_PATTERN = re.compile(r"attribute_icon_([^./]+)\.png")
EFFECT_ICON_PATTERN = re.compile(r"effect_icon_([^./]+)\.png")
LINK_ICON_PATTERN = re.compile(r"link(\d+)\.png")

ATK_PATTERN = re.compile(r"(?:攻撃力|ATK)[:\s]*([0-9X?]+)")
DEF_PATTERN = re.compile(r"(?:守備力|DEF)[:\s]*([0-9X?]+)")

DEFAULT_CIID = "1"

NOT_LEGAL_PHRASES = ("公式のデュエルでは使用できません", "公式大会で使用できません")
NOT_LEGAL_PHRASES_EN = ("cannot be used in official", "not legal for official")

LIMIT_REGULATION_CLASSES = (
    ("fl_1", LimitRegulation.FORBIDDEN),
    ("fl_2", LimitRegulation.LIMITED),
    ("fl_3", LimitRegulation.SEMI_LIMITED),
)

EXTRA_DECK_SPECIES_TOKENS = ("融合", "シンクロ", "Fusion", "Synchro")


@dataclass(frozen=True, slots=True)
class ImageInfo:
    """Image identifiers found for one card id in the page markup."""

    ciid: str | None = None
    img_hash: str | None = None


@dataclass(frozen=True, slots=True)
class _CommonFields:
    name: str
    card_id: str
    ciid: str
    images: tuple[CardImage, ...]
    ruby: str | None
    text: str | None
    limit_regulation: LimitRegulation | None
    biko: str | None
    is_not_legal_for_official: bool

    def as_kwargs(self) -> dict[str, object]:
        return {
            "name": self.name,
            "card_id": self.card_id,
            "ciid": self.ciid,
            "images": self.images,
            "ruby": self.ruby,
            "text": self.text,
            "limit_regulation": self.limit_regulation,
            "biko": self.biko,
            "is_not_legal_for_official": self.is_not_legal_for_official,
        }


def extract_image_info(html: str) -> dict[str, ImageInfo]:
    """
    Collect image ids for every card referenced in the page markup.

    Args:
        html: Raw page HTML

    Returns:
        Dict mapping card id to its image info. Later matches win.
    """
    info: dict[str, ImageInfo] = {}
    for match in IMAGE_URL_PATTERN.finditer(html):
        cid, ciid, img_hash = match.groups()
        info[cid] = ImageInfo(ciid=ciid or None, img_hash=img_hash or None)
    return info


def detect_card_type(row: Tag) -> CardType | None:
    """Classify a row by its attribute icon. None when the row has no icon."""
    src = attr_text(row.select_one(".box_card_attribute img"), "src")
    if not src:
        return None

    if "attribute_icon_spell" in src:
        return CardType.SPELL
    if "attribute_icon_trap" in src:
        return CardType.TRAP
    if "attribute_icon_" in src:
        return CardType.MONSTER
    return None


def is_not_legal_for_official(remarks: str | None) -> bool:
    if not remarks:
        return False
    if any(phrase in remarks for phrase in NOT_LEGAL_PHRASES):
        return True
    lowered = remarks.lower()
    return any(phrase in lowered for phrase in NOT_LEGAL_PHRASES_EN)


def parse_link_markers(link_value: str) -> int:
    """
    Decode arrow directions into a bitmask.

    Directions use numpad layout (7 8 9 / 4 _ 6 / 1 2 3); direction n sets bit n-1.
    "1234" -> 0b1111, "2468" -> 0b10101010. Digits 0 and 5 are ignored.
    """
    markers = 0
    for char in link_value:
        direction = int(char)
        if 1 <= direction <= 9 and direction != 5:
            markers |= 1 << (direction - 1)
    return markers


def parse_species_and_types(species_text: str) -> tuple[Race, list[MonsterType]] | None:
    """
    Split a species string into race and monster types.

    Example: "【ドラゴン族／融合／効果】" -> (Race.DRAGON, [FUSION, EFFECT])

    Returns None when the race is missing or unknown. Unknown type labels are dropped.
    """
    cleaned = re.sub(r"[【】\[\]]", "", species_text).strip()
    parts = [part.strip() for part in re.split(r"[／/]", cleaned) if part.strip()]
    if not parts:
        return None

    race = map_race(parts[0])
    if race is None:
        return None

    types: list[MonsterType] = []
    for type_text in parts[1:]:
        monster_type = map_monster_type(type_text)
        if monster_type is not None:
            types.append(monster_type)
    return race, types


def is_extra_deck_monster(row: Tag) -> bool:
    """
    Best-effort Extra Deck classification.

    Any of these signals marks the monster as Extra Deck:

    =========================  ==================================================
    signal                     true when
    =========================  ==================================================
    rank icon                  the level/rank image is ``icon_rank.png`` (Xyz)
    no level/rank element      a monster row without ``.box_card_level_rank`` (Link)
    species tokens             species text names Fusion or Synchro
    =========================  ==================================================

    The signals overlap and none is authoritative on its own.
    """
    level_rank = row.select_one(".box_card_level_rank")
    if level_rank is not None:
        if "icon_rank.png" in attr_text(level_rank.select_one("img"), "src"):
            return True
    elif detect_card_type(row) is CardType.MONSTER:
        return True

    species = row.select_one(".card_info_species_and_other_item")
    if species is not None:
        species_text = species.get_text()
        if any(token in species_text for token in EXTRA_DECK_SPECIES_TOKENS):
            return True

    return False


def _parse_common(row: Tag, image_info: dict[str, ImageInfo]) -> _CommonFields | None:
    name_elem = row.select_one(".card_name")
    name = name_elem.get_text().strip() if name_elem is not None else ""
    if not name:
        return None

    match = CARD_ID_PATTERN.search(attr_text(row.select_one("input.link_value"), "value"))
    if not match:
        return None
    card_id = match.group(1)

    ruby_elem = row.select_one(".card_ruby")
    ruby = ruby_elem.get_text().strip() if ruby_elem is not None else ""

    info = image_info.get(card_id, ImageInfo())
    ciid = info.ciid or DEFAULT_CIID
    img_hash = info.img_hash or f"{card_id}_1_1_1"

    text_elem = row.select_one(".box_card_text")
    text = text_with_breaks(text_elem) if text_elem is not None else ""

    limit_regulation = None
    lr_icon = row.select_one(".lr_icon")
    if lr_icon is not None:
        for class_name, regulation in LIMIT_REGULATION_CLASSES:
            if has_class(lr_icon, class_name):
                limit_regulation = regulation
                break

    biko_elem = row.select_one(".box_card_text.biko")
    biko = text_with_breaks(biko_elem, drop_rules=True) if biko_elem is not None else ""

    return _CommonFields(
        name=name,
        card_id=card_id,
        ciid=ciid,
        images=(CardImage(ciid=ciid, img_hash=img_hash),),
        ruby=ruby or None,
        text=text or None,
        limit_regulation=limit_regulation,
        biko=biko or None,
        is_not_legal_for_official=is_not_legal_for_official(biko),
    )


def _stat_value(raw: str) -> int | str:
    return int(raw) if raw.isdigit() else raw


def _parse_monster(row: Tag, common: _CommonFields) -> MonsterCard | None:
    attr_match = ATTRIBUTE_ICON_PATTERN.search(
        attr_text(row.select_one(".box_card_attribute img"), "src")
    )
    if not attr_match:
        return None
    attribute = map_attribute(attr_match.group(1))
    if attribute is None:
        return None

    link_value: str | None = None
    level_rank = row.select_one(".box_card_level_rank")
    link_marker = row.select_one(".box_card_linkmarker")

    if level_rank is not None:
        level_type = LevelType.RANK if has_class(level_rank, "rank") else LevelType.LEVEL
        icon_src = attr_text(level_rank.select_one("img"), "src")
        if "icon_rank.png" in icon_src:
            level_type = LevelType.RANK
        elif "icon_level.png" in icon_src:
            level_type = LevelType.LEVEL
        value_span = level_rank.select_one("span")
    elif link_marker is not None:
        level_type = LevelType.LINK
        value_span = link_marker.select_one("span")
        link_match = LINK_ICON_PATTERN.search(attr_text(link_marker.select_one("img"), "src"))
        if link_match:
            link_value = link_match.group(1)
    else:
        return None

    level_value = first_int(value_span.get_text()) if value_span is not None else None
    if level_value is None:
        return None

    species = row.select_one(".card_info_species_and_other_item")
    if species is None:
        return None
    parsed = parse_species_and_types(species.get_text())
    if parsed is None:
        return None
    race, monster_types = parsed

    atk: int | str | None = None
    defense: int | str | None = None
    for span in row.select(".box_card_spec span"):
        span_text = span.get_text()
        atk_match = ATK_PATTERN.search(span_text)
        if atk_match:
            atk = _stat_value(atk_match.group(1))
        def_match = DEF_PATTERN.search(span_text)
        if def_match:
            defense = _stat_value(def_match.group(1))

    scale_elem = row.select_one(".box_card_pen_scale")
    pendulum_scale = first_int(scale_elem.get_text()) if scale_elem is not None else None

    pen_effect = row.select_one(".box_card_pen_effect")
    pendulum_text = text_with_breaks(pen_effect) if pen_effect is not None else ""

    link_markers = None
    if level_type is LevelType.LINK and link_value:
        link_markers = parse_link_markers(link_value)

    return MonsterCard(
        **common.as_kwargs(),
        attribute=attribute,
        level_type=level_type,
        level_value=level_value,
        race=race,
        monster_types=tuple(monster_types),
        atk=atk,
        defense=defense,
        link_markers=link_markers,
        pendulum_scale=pendulum_scale,
        pendulum_text=pendulum_text or None,
        is_extra_deck=is_extra_deck_monster(row),
    )


def _effect_token(row: Tag) -> str | None:
    match = EFFECT_ICON_PATTERN.search(attr_text(row.select_one(".box_card_effect img"), "src"))
    return match.group(1) if match else None


def _parse_spell(row: Tag, common: _CommonFields) -> SpellCard:
    token = _effect_token(row)
    effect_type = map_spell_effect(token) if token else None
    return SpellCard(**common.as_kwargs(), effect_type=effect_type or SpellEffectType.NORMAL)


def _parse_trap(row: Tag, common: _CommonFields) -> TrapCard:
    token = _effect_token(row)
    effect_type = map_trap_effect(token) if token else None
    return TrapCard(**common.as_kwargs(), effect_type=effect_type or TrapEffectType.NORMAL)


def parse_search_result_row(row: Tag, image_info: dict[str, ImageInfo]) -> Card | None:
    """
    Parse one result row into a card.

    Args:
        row: A ``.t_row`` element
        image_info: Page-level image lookup from extract_image_info

    Returns:
        MonsterCard, SpellCard or TrapCard. None when the row is not a card or
        lacks an identifying field (name, id, attribute, race, level/link).
    """
    common = _parse_common(row, image_info)
    if common is None:
        return None

    card_type = detect_card_type(row)
    if card_type is CardType.MONSTER:
        return _parse_monster(row, common)
    if card_type is CardType.SPELL:
        return _parse_spell(row, common)
    if card_type is CardType.TRAP:
        return _parse_trap(row, common)
    return None


def parse_card_listing(html: str) -> ListingPage[Card]:
    """
    Parse every card row of a search result page.

    Args:
        html: Raw page HTML

    Returns:
        Cards in page order, with the raw row count. Unparseable rows are
        skipped and show up in ``skipped``.
    """
    soup = make_soup(html)
    image_info = extract_image_info(html)

    rows = soup.select(".t_row")
    cards: list[Card] = []
    for row in rows:
        card = parse_search_result_row(row, image_info)
        if card is not None:
            cards.append(card)

    page = ListingPage(items=cards, rows=len(rows))
    if page.skipped:
        logger.warning("Skipped %d unparseable rows", page.skipped)
    return page


def parse_card_list_page(html: str) -> list[Card]:
    """Cards of a search result page, in page order."""
    return parse_card_listing(html).items
