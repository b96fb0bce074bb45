"""
Search-key normalisation for card names.

The normalised form folds away the differences users do not type consistently:
whitespace, punctuation, character width, letter case and kana script. It is an
index key only; card identity is always the numeric card id.

Example:
    "Ｂｌｕｅ－Ｅｙｅｓ　Ｗｈｉｔｅ　Ｄｒａｇｏｎ" -> "blueeyeswhitedragon"
    "ブルーアイズ・ホワイト・ドラゴン" -> "ブルーアイズホワイトドラゴン"
"""

import re

_WHITESPACE = re.compile(r"[\s　]+")

_PUNCTUATION = re.compile(
    r"[・★☆※‼！？。、,.，．:：;；「」『』【】〔〕（）()［］\[\]｛｝{}〈〉《》〜～~\-－_＿/／\\＼"
    r"|｜&＆@＠#＃$＄%％^＾*＊+＋=＝<＜>＞'\"“”‘’`´｀]"
)

# Variant kanji the site uses interchangeably in card names
_KANJI_VARIANTS = str.maketrans({"竜": "龍", "剣": "劍"})

_FULLWIDTH_ALNUM = str.maketrans(
    {
        code: code - 0xFEE0
        for start, end in (("Ａ", "Ｚ"), ("ａ", "ｚ"), ("０", "９"))
        for code in range(ord(start), ord(end) + 1)
    }
)

# ぁ (U+3041) .. ゖ (U+3096) map onto ァ .. ヶ
_HIRAGANA_TO_KATAKANA = str.maketrans({code: code + 0x60 for code in range(0x3041, 0x3097)})


def normalize_for_search(value: str | None) -> str:
    """
    Fold a card name into its search key.

    Args:
        value: Card name as displayed on the site

    Returns:
        Normalised key. Empty string for empty input.
    """
    if not value:
        return ""

    folded = _WHITESPACE.sub("", value)
    folded = _PUNCTUATION.sub("", folded)
    folded = folded.translate(_KANJI_VARIANTS)
    folded = folded.translate(_FULLWIDTH_ALNUM)
    folded = folded.lower()
    return folded.translate(_HIRAGANA_TO_KATAKANA)
