from pathlib import Path

import pytest

from ygodb.models import (
    Attribute,
    CardImage,
    CardSupplement,
    FaqEntry,
    LevelType,
    MonsterCard,
    MonsterType,
    Race,
    SpellCard,
    SpellEffectType,
    TrapCard,
    TrapEffectType,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def card_list_html() -> str:
    return read_fixture("card_list.html")


@pytest.fixture
def faq_list_html() -> str:
    return read_fixture("faq_list.html")


@pytest.fixture
def faq_detail_html() -> str:
    return read_fixture("faq_detail.html")


@pytest.fixture
def card_detail_html() -> str:
    return read_fixture("card_detail.html")


@pytest.fixture
def monster_card() -> MonsterCard:
    """Sample normal monster."""
    return MonsterCard(
        name="青眼の白龍",
        card_id="4007",
        ciid="1",
        images=(CardImage(ciid="1", img_hash="K9xTq2Lm"),),
        ruby="ブルーアイズ・ホワイト・ドラゴン",
        text="高い攻撃力を誇る伝説のドラゴン。\nどんな相手でも粉砕する。",
        attribute=Attribute.LIGHT,
        level_type=LevelType.LEVEL,
        level_value=8,
        race=Race.DRAGON,
        monster_types=(MonsterType.NORMAL,),
        atk=3000,
        defense=2500,
    )


@pytest.fixture
def link_card() -> MonsterCard:
    """Sample link monster with no DEF."""
    return MonsterCard(
        name="デコード・トーカー",
        card_id="12950",
        ciid="1",
        images=(CardImage(ciid="1", img_hash="12950_1_1_1"),),
        text="効果モンスター２体以上",
        attribute=Attribute.DARK,
        level_type=LevelType.LINK,
        level_value=3,
        race=Race.CYBERSE,
        monster_types=(MonsterType.LINK, MonsterType.EFFECT),
        atk=2300,
        link_markers=133,
        is_extra_deck=True,
    )


@pytest.fixture
def spell_card() -> SpellCard:
    return SpellCard(
        name="サイクロン",
        card_id="5500",
        ciid="3",
        images=(CardImage(ciid="3", img_hash="Cyc10ne"),),
        text="①：フィールドの魔法・罠カード１枚を対象として発動できる。",
        effect_type=SpellEffectType.QUICK,
    )


@pytest.fixture
def trap_card() -> TrapCard:
    return TrapCard(
        name="神の宣告",
        card_id="4861",
        ciid="1",
        images=(CardImage(ciid="1", img_hash="4861_1_1_1"),),
        text="ライフポイントを半分払って\t以下の効果を発動できる。",
        biko="このカードは公式のデュエルでは使用できません。",
        is_not_legal_for_official=True,
        effect_type=TrapEffectType.COUNTER,
    )


@pytest.fixture
def faq_entry() -> FaqEntry:
    return FaqEntry(
        faq_id="115",
        question="「{{青眼の白龍|4007}}」を対象にできますか？",
        answer="はい。\nできます。",
        updated_at="2020/01/01",
    )


@pytest.fixture
def supplement_entry() -> CardSupplement:
    return CardSupplement(
        card_id="10000",
        card_name="オッドアイズ・ペンデュラム・ドラゴン",
        supplement_info="①の効果は{{青眼の白龍|4007}}にも適用されます。",
        supplement_date="2023/04/01",
    )
