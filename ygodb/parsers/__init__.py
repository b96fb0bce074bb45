from ygodb.parsers.card_list import (
    extract_image_info,
    parse_card_list_page,
    parse_card_listing,
    parse_search_result_row,
)
from ygodb.parsers.dom import ListingPage
from ygodb.parsers.faq import parse_faq_detail, parse_faq_id_list, parse_faq_id_listing
from ygodb.parsers.supplement import parse_card_supplement

__all__ = [
    "ListingPage",
    "extract_image_info",
    "parse_card_list_page",
    "parse_card_listing",
    "parse_card_supplement",
    "parse_faq_detail",
    "parse_faq_id_list",
    "parse_faq_id_listing",
    "parse_search_result_row",
]
