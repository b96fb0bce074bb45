"""
Parsers for FAQ pages.

FAQ list pages only carry ids (in a hidden link input per row); the question,
answer and update date live on the per-FAQ detail page.
"""

import re

from ygodb.models.faq import FaqEntry
from ygodb.parsers.dom import ListingPage, attr_text, make_soup, text_with_card_links

# Hidden input value: /yugiohdb/faq_search.action?ope=5&fid=115&keyword=&tag=-1
FAQ_ID_PATTERN = re.compile(r"[?&]fid=(\d+)")


def parse_faq_id_listing(html: str) -> ListingPage[str]:
    """
    Extract FAQ ids from a FAQ list page.

    Args:
        html: Raw list page HTML

    Returns:
        FAQ ids in page order, with the raw row count. Rows without an fid
        link are skipped.
    """
    soup = make_soup(html)
    rows = soup.select(".t_row")
    faq_ids: list[str] = []

    for row in rows:
        match = FAQ_ID_PATTERN.search(attr_text(row.select_one("input.link_value"), "value"))
        if match:
            faq_ids.append(match.group(1))

    return ListingPage(items=faq_ids, rows=len(rows))


def parse_faq_id_list(html: str) -> list[str]:
    """FAQ ids of a FAQ list page, in page order."""
    return parse_faq_id_listing(html).items


def parse_faq_detail(html: str, faq_id: str) -> FaqEntry | None:
    """
    Parse a FAQ detail page.

    Args:
        html: Raw detail page HTML
        faq_id: Id the page was requested for

    Returns:
        FaqEntry, or None when the page has no question text.
    """
    soup = make_soup(html)

    question_elem = soup.select_one("#question_text")
    if question_elem is None:
        return None
    question = text_with_card_links(question_elem)
    if not question:
        return None

    answer_elem = soup.select_one("#answer_text")
    answer = text_with_card_links(answer_elem) if answer_elem is not None else ""

    date_elem = soup.select_one("#tag_update .date")
    updated_at = date_elem.get_text().strip() if date_elem is not None else ""

    return FaqEntry(
        faq_id=faq_id,
        question=question,
        answer=answer,
        updated_at=updated_at or None,
    )
