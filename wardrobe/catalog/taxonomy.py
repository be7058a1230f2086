"""Closed vocabularies used to describe clothing items.

Values are the Turkish labels the analysis model is asked to return and the
strings persisted in the ``clothing_items`` table.
"""

from __future__ import annotations

from enum import Enum


class CategoryGroup(str, Enum):
    """Coarse grouping used for wardrobe sections."""

    TOPS = "Üst Giyim"
    BOTTOMS = "Alt Giyim"
    ONEPIECE = "Tek Parça"
    OUTERWEAR = "Dış Giyim"
    SHOES = "Ayakkabı"
    ACCESSORIES = "Aksesuar"


class ClothingCategory(str, Enum):
    """Garment category."""

    TSHIRT = "Tişört"
    SHIRT = "Gömlek"
    POLO = "Polo"
    SWEATER = "Kazak"
    HOODIE = "Kapüşonlu"
    BLAZER = "Ceket"
    CARDIGAN = "Hırka"
    TANK = "Atlet"
    BLOUSE = "Bluz"

    JEANS = "Kot Pantolon"
    TROUSERS = "Kumaş Pantolon"
    SHORTS = "Şort"
    SKIRT = "Etek"
    LEGGINGS = "Tayt"

    DRESS = "Elbise"
    JUMPSUIT = "Tulum"
    ROMPER = "Şort Tulum"

    COAT = "Palto"
    JACKET = "Mont"
    VEST = "Yelek"
    KIMONO = "Kimono"

    SNEAKERS = "Spor Ayakkabı"
    DRESS_SHOES = "Klasik Ayakkabı"
    BOOTS = "Bot"
    SANDALS = "Sandalet"
    HEELS = "Topuklu"
    FLATS = "Babet"

    BAG = "Çanta"
    HAT = "Şapka"
    SCARF = "Atkı"
    BELT = "Kemer"
    JEWELRY = "Takı"
    GLASSES = "Gözlük"

    @property
    def group(self) -> CategoryGroup:
        return _CATEGORY_GROUPS[self]


_CATEGORY_GROUPS: dict[ClothingCategory, CategoryGroup] = {}
for _group, _members in (
    (
        CategoryGroup.TOPS,
        ("TSHIRT", "SHIRT", "POLO", "SWEATER", "HOODIE", "BLAZER", "CARDIGAN", "TANK", "BLOUSE"),
    ),
    (CategoryGroup.BOTTOMS, ("JEANS", "TROUSERS", "SHORTS", "SKIRT", "LEGGINGS")),
    (CategoryGroup.ONEPIECE, ("DRESS", "JUMPSUIT", "ROMPER")),
    (CategoryGroup.OUTERWEAR, ("COAT", "JACKET", "VEST", "KIMONO")),
    (CategoryGroup.SHOES, ("SNEAKERS", "DRESS_SHOES", "BOOTS", "SANDALS", "HEELS", "FLATS")),
    (CategoryGroup.ACCESSORIES, ("BAG", "HAT", "SCARF", "BELT", "JEWELRY", "GLASSES")),
):
    for _name in _members:
        _CATEGORY_GROUPS[ClothingCategory[_name]] = _group


class StyleType(str, Enum):
    """Overall style of a garment."""

    MINIMALIST = "Minimalist"
    CLASSIC = "Klasik"
    TRENDY = "Trend"
    BOHEMIAN = "Bohem"
    SPORTY = "Sportif"
    ELEGANT = "Şık"
    CASUAL = "Rahat"
    VINTAGE = "Vintage"
    PREPPY = "Preppy"
    EDGY = "Cesur"


class OccasionType(str, Enum):
    """Occasions a garment suits."""

    WORK = "İş"
    CASUAL = "Günlük"
    FORMAL = "Resmi"
    SPORT = "Spor"
    EVENING = "Akşam"
    BEACH = "Plaj"
    TRAVEL = "Seyahat"
    DATE = "Randevu"
    PARTY = "Parti"
    MEETING = "Toplantı"
    WEDDING = "Düğün"
    SHOPPING = "Alışveriş"


class WeatherSuitability(str, Enum):
    """Weather a garment is suitable for."""

    HOT = "Sıcak"  # 25°C+
    WARM = "Ilık"  # 15-25°C
    COOL = "Serin"  # 5-15°C
    COLD = "Soğuk"  # below 5°C
    RAINY = "Yağmurlu"
    SNOWY = "Karlı"
    WINDY = "Rüzgarlı"
