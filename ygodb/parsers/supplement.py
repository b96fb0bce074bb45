"""
Parser for the per-card FAQ page, which holds the card's supplementary rulings.

The page has up to two ``.supplement`` blocks. The ``.text`` element id tells
them apart: ``supplement`` for the card text, ``pen_supplement`` for the
pendulum effect.
"""

from ygodb.models.supplement import CardSupplement
from ygodb.parsers.dom import make_soup, text_with_card_links

SUPPLEMENT_ID = "supplement"
PENDULUM_SUPPLEMENT_ID = "pen_supplement"


def parse_card_name_from_title(title: str) -> str:
    """'Dark Magician | Card Database' -> 'Dark Magician'"""
    return title.split("|")[0].strip()


def parse_card_supplement(html: str, card_id: str) -> CardSupplement:
    """
    Parse a card FAQ page into its supplement entry.

    Args:
        html: Raw page HTML
        card_id: Card id the page was requested for

    Returns:
        CardSupplement. Blocks missing from the page leave their fields None.
    """
    soup = make_soup(html)

    title_elem = soup.select_one("title")
    title = title_elem.get_text() if title_elem is not None else ""
    card_name = parse_card_name_from_title(title)

    found: dict[str, tuple[str | None, str | None]] = {}
    for block in soup.select(".supplement"):
        text_elem = block.select_one(".text")
        if text_elem is None:
            continue

        date_elem = block.select_one(".title .update")
        date = date_elem.get_text().strip() if date_elem is not None else ""
        text = text_with_card_links(text_elem)

        found[str(text_elem.get("id", ""))] = (text or None, date or None)

    supplement_info, supplement_date = found.get(SUPPLEMENT_ID, (None, None))
    pen_info, pen_date = found.get(PENDULUM_SUPPLEMENT_ID, (None, None))

    return CardSupplement(
        card_id=card_id,
        card_name=card_name,
        supplement_info=supplement_info,
        supplement_date=supplement_date,
        pendulum_supplement_info=pen_info,
        pendulum_supplement_date=pen_date,
    )
