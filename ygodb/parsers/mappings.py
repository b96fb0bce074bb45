"""
Lookup tables from site tokens to card enums.

Icon-based fields are keyed by the fragment of the image file name
(``attribute_icon_<token>.png``, ``effect_icon_<token>.png``). Species and
monster types are keyed by the label text, in both the Japanese and English
locales of the site.

Every lookup returns None for an unknown token; callers decide whether that
makes the record unparseable.
"""

from types import MappingProxyType

from ygodb.models.card import (
    Attribute,
    MonsterType,
    Race,
    SpellEffectType,
    TrapEffectType,
)

ATTRIBUTE_PATH_TO_ID = MappingProxyType({attribute.value: attribute for attribute in Attribute})

RACE_TEXT_TO_ID = MappingProxyType(
    {
        "魔法使い族": Race.SPELLCASTER,
        "ドラゴン族": Race.DRAGON,
        "アンデット族": Race.ZOMBIE,
        "戦士族": Race.WARRIOR,
        "獣戦士族": Race.BEASTWARRIOR,
        "獣族": Race.BEAST,
        "鳥獣族": Race.WINDBEAST,
        "悪魔族": Race.FIEND,
        "天使族": Race.FAIRY,
        "昆虫族": Race.INSECT,
        "恐竜族": Race.DINOSAUR,
        "爬虫類族": Race.REPTILE,
        "魚族": Race.FISH,
        "海竜族": Race.SEASERPENT,
        "水族": Race.AQUA,
        "炎族": Race.PYRO,
        "雷族": Race.THUNDER,
        "岩石族": Race.ROCK,
        "植物族": Race.PLANT,
        "機械族": Race.MACHINE,
        "サイキック族": Race.PSYCHIC,
        "幻神獣族": Race.DIVINE,
        "創造神族": Race.CREATORGOD,
        "幻竜族": Race.WYRM,
        "サイバース族": Race.CYBERSE,
        "幻想魔族": Race.ILLUSION,
        # English locale
        "Spellcaster": Race.SPELLCASTER,
        "Dragon": Race.DRAGON,
        "Zombie": Race.ZOMBIE,
        "Warrior": Race.WARRIOR,
        "Beast-Warrior": Race.BEASTWARRIOR,
        "Beast": Race.BEAST,
        "Winged Beast": Race.WINDBEAST,
        "Fiend": Race.FIEND,
        "Fairy": Race.FAIRY,
        "Insect": Race.INSECT,
        "Dinosaur": Race.DINOSAUR,
        "Reptile": Race.REPTILE,
        "Fish": Race.FISH,
        "Sea Serpent": Race.SEASERPENT,
        "Aqua": Race.AQUA,
        "Pyro": Race.PYRO,
        "Thunder": Race.THUNDER,
        "Rock": Race.ROCK,
        "Plant": Race.PLANT,
        "Machine": Race.MACHINE,
        "Psychic": Race.PSYCHIC,
        "Divine-Beast": Race.DIVINE,
        "Creator God": Race.CREATORGOD,
        "Wyrm": Race.WYRM,
        "Cyberse": Race.CYBERSE,
        "Illusion": Race.ILLUSION,
    }
)

MONSTER_TYPE_TEXT_TO_ID = MappingProxyType(
    {
        "通常": MonsterType.NORMAL,
        "効果": MonsterType.EFFECT,
        "儀式": MonsterType.RITUAL,
        "融合": MonsterType.FUSION,
        "シンクロ": MonsterType.SYNCHRO,
        "エクシーズ": MonsterType.XYZ,
        "トゥーン": MonsterType.TOON,
        "スピリット": MonsterType.SPIRIT,
        "ユニオン": MonsterType.UNION,
        "デュアル": MonsterType.GEMINI,
        "チューナー": MonsterType.TUNER,
        "リバース": MonsterType.FLIP,
        "ペンデュラム": MonsterType.PENDULUM,
        "特殊召喚": MonsterType.SPECIAL,
        "リンク": MonsterType.LINK,
        # English locale
        "Normal": MonsterType.NORMAL,
        "Effect": MonsterType.EFFECT,
        "Ritual": MonsterType.RITUAL,
        "Fusion": MonsterType.FUSION,
        "Synchro": MonsterType.SYNCHRO,
        "Xyz": MonsterType.XYZ,
        "Toon": MonsterType.TOON,
        "Spirit": MonsterType.SPIRIT,
        "Union": MonsterType.UNION,
        "Gemini": MonsterType.GEMINI,
        "Tuner": MonsterType.TUNER,
        "Flip": MonsterType.FLIP,
        "Pendulum": MonsterType.PENDULUM,
        "Special Summon": MonsterType.SPECIAL,
        "Link": MonsterType.LINK,
    }
)

# Normal spells/traps have no effect icon, so "normal" never appears here
SPELL_EFFECT_PATH_TO_ID = MappingProxyType(
    {
        "quickplay": SpellEffectType.QUICK,
        "continuous": SpellEffectType.CONTINUOUS,
        "equip": SpellEffectType.EQUIP,
        "field": SpellEffectType.FIELD,
        "ritual": SpellEffectType.RITUAL,
    }
)

TRAP_EFFECT_PATH_TO_ID = MappingProxyType(
    {
        "continuous": TrapEffectType.CONTINUOUS,
        "counter": TrapEffectType.COUNTER,
    }
)


def map_attribute(path_token: str) -> Attribute | None:
    return ATTRIBUTE_PATH_TO_ID.get(path_token)


def map_race(text: str) -> Race | None:
    return RACE_TEXT_TO_ID.get(text.strip())


def map_monster_type(text: str) -> MonsterType | None:
    return MONSTER_TYPE_TEXT_TO_ID.get(text.strip())


def map_spell_effect(path_token: str) -> SpellEffectType | None:
    return SPELL_EFFECT_PATH_TO_ID.get(path_token)


def map_trap_effect(path_token: str) -> TrapEffectType | None:
    return TRAP_EFFECT_PATH_TO_ID.get(path_token)
