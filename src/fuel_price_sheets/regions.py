"""Static partition tables: fuels, canonical regions and legacy east/west groups."""

from __future__ import annotations

from typing import Literal

Fuel = Literal["regular", "high", "diesel"]
Region = Literal[
    "hokkaido", "tohoku", "kanto", "chubu", "kinki",
    "chugoku", "shikoku", "kyushu", "okinawa",
]
LegacyGroup = Literal["east", "west"]

FUELS: tuple[Fuel, ...] = ("regular", "high", "diesel")

FUEL_SHEET_NAME: dict[str, str] = {
    "regular": "レギュラー",
    "high": "ハイオク",
    "diesel": "軽油",
}

FUEL_TITLE: dict[str, str] = {
    "regular": "レギュラー",
    "high": "ハイオク",
    "diesel": "軽油",
}

# Canonical partition, in display order.
REGION_PREFECTURES: dict[str, tuple[str, ...]] = {
    "hokkaido": ("北海道",),
    "tohoku": ("青森", "岩手", "宮城", "秋田", "山形", "福島"),
    "kanto": ("茨城", "栃木", "群馬", "埼玉", "千葉", "東京", "神奈川"),
    "chubu": ("新潟", "富山", "石川", "福井", "山梨", "長野", "岐阜", "静岡", "愛知"),
    "kinki": ("三重", "滋賀", "京都", "大阪", "兵庫", "奈良", "和歌山"),
    "chugoku": ("鳥取", "島根", "岡山", "広島", "山口"),
    "shikoku": ("徳島", "香川", "愛媛", "高知"),
    "kyushu": ("福岡", "佐賀", "長崎", "熊本", "大分", "宮崎", "鹿児島"),
    "okinawa": ("沖縄",),
}

REGIONS: tuple[str, ...] = tuple(REGION_PREFECTURES)

REGION_TITLE: dict[str, str] = {
    "hokkaido": "北海道",
    "tohoku": "東北",
    "kanto": "関東",
    "chubu": "中部",
    "kinki": "近畿",
    "chugoku": "中国",
    "shikoku": "四国",
    "kyushu": "九州",
    "okinawa": "沖縄",
    "east": "東日本",
    "west": "西日本",
}

# Older template layout: two coarse groups of whole canonical regions.
# Earlier weekly east blocks also listed 富山, 石川, 福井, 山梨 and 長野; this
# grouping keeps them in the west block and moves only 新潟 (see
# BOUNDARY_REASSIGNMENTS), so templates with those east columns leave them
# blank.
LEGACY_GROUPS: dict[str, tuple[str, ...]] = {
    "east": ("hokkaido", "tohoku", "kanto"),
    "west": ("chubu", "kinki", "chugoku", "shikoku", "kyushu", "okinawa"),
}

# prefecture -> (from group, to group).  The template groups Niigata with
# the east block although the canonical partition files it under chubu.
BOUNDARY_REASSIGNMENTS: dict[str, tuple[str, str]] = {
    "新潟": ("west", "east"),
}

# Template headers for these regions may carry a suffix the data side lacks.
LABEL_SUFFIX_VARIANTS: dict[str, tuple[str, ...]] = {
    "hokkaido": ("局",),
    "okinawa": ("県", "局"),
}

# Region -> prefecture that must carry real prices for a stored state to be
# considered complete.
COMPLETENESS_ANCHORS: dict[str, str] = {
    "hokkaido": "北海道",
    "okinawa": "沖縄",
}


def section_id(fuel: str, region: str) -> str:
    return f"{fuel}-{region}"


def section_title(fuel: str, region: str) -> str:
    return f"{FUEL_TITLE[fuel]}（{REGION_TITLE[region]}）"


def split_section_id(value: str) -> tuple[str, str]:
    """Split ``"regular-kanto"`` into ``("regular", "kanto")``."""
    fuel, sep, region = value.partition("-")
    if not sep or fuel not in FUEL_SHEET_NAME or region not in REGION_TITLE:
        raise ValueError(f"Invalid section id: {value!r}")
    return fuel, region


def region_of(prefecture: str) -> str | None:
    for region, prefectures in REGION_PREFECTURES.items():
        if prefecture in prefectures:
            return region
    return None


def legacy_group_prefectures(group: str) -> list[str]:
    """Prefectures of a legacy group in template order, boundary moves applied."""
    if group not in LEGACY_GROUPS:
        raise ValueError(f"Unknown legacy group: {group!r}")
    moved_out = {p for p, (src, _dst) in BOUNDARY_REASSIGNMENTS.items() if src == group}
    moved_in = [p for p, (_src, dst) in BOUNDARY_REASSIGNMENTS.items() if dst == group]

    prefectures: list[str] = []
    for region in LEGACY_GROUPS[group]:
        prefectures.extend(p for p in REGION_PREFECTURES[region] if p not in moved_out)
    prefectures.extend(p for p in moved_in if p not in prefectures)
    return prefectures


def label_variants(prefecture: str) -> list[str]:
    """Return the template labels that may stand for *prefecture*."""
    variants = [prefecture]
    region = region_of(prefecture)
    for suffix in LABEL_SUFFIX_VARIANTS.get(region or "", ()):
        variants.append(f"{prefecture}{suffix}")
    return variants
